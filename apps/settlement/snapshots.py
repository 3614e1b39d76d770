"""
Snapshot loading.

The reads behind a report are independent, so they are issued together and
joined before anything is computed. A failed read fails the whole snapshot;
partial input is never returned.

Stores run their reads on worker threads unless they set
``concurrent_reads = False``; the Django store does that under test, where
every read must share the test transaction's connection. After a read on a
worker thread the store's ``release_connection`` (if any) is called so the
thread does not keep a database connection open.
"""
import asyncio
import logging

from asgiref.sync import async_to_sync, sync_to_async

from .records import LedgerSnapshot

logger = logging.getLogger(__name__)

ALL_TABLES = ('meals', 'bazar', 'deposits')


async def _nothing():
    return []


def _async_read(store, fetch):
    concurrent = getattr(store, 'concurrent_reads', True)
    release = getattr(store, 'release_connection', None)

    def call(**kwargs):
        try:
            return fetch(**kwargs)
        finally:
            if concurrent and release is not None:
                release()

    return sync_to_async(call, thread_sensitive=not concurrent)


async def gather_snapshot(store, member_id=None, date_from=None, date_to=None, tables=ALL_TABLES) -> LedgerSnapshot:
    """
    Fetch members plus the requested record tables concurrently.

    Args:
        store: A ``LedgerStore``.
        member_id: Only records of this member, or None for all.
        date_from: Inclusive lower date bound for records, or None.
        date_to: Inclusive upper date bound for records, or None.
        tables: Record tables to load; the others come back empty.

    Raises:
        DataAccessError: If any read fails.
    """
    def read(name):
        if name not in tables:
            return _nothing()
        fetch = _async_read(store, getattr(store, f'get_{name}'))
        return fetch(member_id=member_id, date_from=date_from, date_to=date_to)

    members, meals, bazar, deposits = await asyncio.gather(
        _async_read(store, store.get_members)(),
        read('meals'),
        read('bazar'),
        read('deposits'),
    )
    logger.debug(
        "Loaded snapshot: %d members, %d meals, %d bazar, %d deposits",
        len(members), len(meals), len(bazar), len(deposits),
    )
    return LedgerSnapshot(members=members, meals=meals, bazar=bazar, deposits=deposits)


def load_snapshot(store, member_id=None, date_from=None, date_to=None, tables=ALL_TABLES) -> LedgerSnapshot:
    """Synchronous entry point for views and commands."""
    return async_to_sync(gather_snapshot)(
        store, member_id=member_id, date_from=date_from, date_to=date_to, tables=tables
    )
