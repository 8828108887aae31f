"""
Services métier : annonces (cache, quotas, recherche), leads et abonnements.
"""
