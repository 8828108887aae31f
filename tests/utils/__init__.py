"""Utilitaires de test"""
