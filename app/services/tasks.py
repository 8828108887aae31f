"""
Tâches détachées (fire-and-forget).

La requête qui planifie la tâche n'attend pas sa fin. Les erreurs sont
journalisées puis abandonnées. ``drain()`` permet d'attendre les tâches en
cours (tests, arrêt du processus).
"""
import asyncio
import logging
from typing import Awaitable, Optional, Set

logger = logging.getLogger(__name__)


class DetachedTasks:
    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()

    def spawn(self, coro: Awaitable, name: Optional[str] = None) -> asyncio.Task:
        """Planifie coro sur la boucle courante sans l'attendre"""
        task = asyncio.ensure_future(coro)
        if name:
            task.set_name(name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.debug(f"Tâche détachée {task.get_name()} en échec (ignoré): {error}")

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Attend toutes les tâches en cours, y compris celles qu'elles planifient"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
