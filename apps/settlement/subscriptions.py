"""
Ledger change feed.

``subscribe`` delivers a ``ChangeEvent`` for every save or delete of a
member, meal, bazar or deposit row in this process. Subscribers react by
loading a fresh snapshot and re-running the pure computations; events carry
no diff.

Example::

    def refresh(event):
        snapshot = load_snapshot(store)
        cache['report'] = build_period_report(snapshot, Period.all_time())

    subscription = subscribe(refresh)
    ...
    subscription.cancel()
"""
from dataclasses import dataclass
import itertools
import logging

from django.db.models.signals import post_delete, post_save

from apps.ledger.models import BazarRecord, DepositRecord, MealRecord
from apps.members.models import Member

logger = logging.getLogger(__name__)

WATCHED_MODELS = {
    Member: 'members',
    MealRecord: 'meals',
    BazarRecord: 'bazar',
    DepositRecord: 'deposits',
}

_subscription_ids = itertools.count(1)


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    action: str
    row_id: object


class Subscription:
    """Handle returned by ``subscribe``; ``cancel`` stops delivery."""

    def __init__(self, callback, tables=None):
        self.callback = callback
        self.tables = set(tables) if tables else set(WATCHED_MODELS.values())
        self._uid = f'ledger-change-feed-{next(_subscription_ids)}'
        self.active = False

    def _on_save(self, sender, instance, created, **kwargs):
        self._deliver(ChangeEvent(WATCHED_MODELS[sender], 'create' if created else 'update', instance.pk))

    def _on_delete(self, sender, instance, **kwargs):
        self._deliver(ChangeEvent(WATCHED_MODELS[sender], 'delete', instance.pk))

    def _deliver(self, event):
        if not self.active or event.table not in self.tables:
            return
        try:
            self.callback(event)
        except Exception:
            # A broken subscriber must not fail the write that triggered it
            logger.exception("Change feed subscriber failed for %s", event)

    def start(self):
        for model in WATCHED_MODELS:
            post_save.connect(self._on_save, sender=model, weak=False, dispatch_uid=f'{self._uid}-save')
            post_delete.connect(self._on_delete, sender=model, weak=False, dispatch_uid=f'{self._uid}-delete')
        self.active = True
        return self

    def cancel(self):
        """Stop delivery. Safe to call more than once."""
        if not self.active:
            return
        self.active = False
        for model in WATCHED_MODELS:
            post_save.disconnect(sender=model, dispatch_uid=f'{self._uid}-save')
            post_delete.disconnect(sender=model, dispatch_uid=f'{self._uid}-delete')

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.cancel()


def subscribe(callback, tables=None) -> Subscription:
    """Start delivering change events to ``callback``."""
    return Subscription(callback, tables).start()
