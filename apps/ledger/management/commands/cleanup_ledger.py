"""
Management command for bulk ledger cleanup.

Modes (exactly one per run):
    --member-name NAME   Delete members whose name matches NAME (case-insensitive)
                         together with their meals, bazar and deposits.
    --without-account    Delete members not linked to a login account,
                         together with their records.
    --all                Delete every meal, bazar and deposit record. Members are
                         kept. Requires --confirm "erase all".
    --records-of MEMBER  Delete one member's meals, bazar and deposits; the member
                         is kept. MEMBER is an email address or member id.

Usage:
    python manage.py cleanup_ledger --without-account --dry-run
    python manage.py cleanup_ledger --all --confirm "erase all"
    python manage.py cleanup_ledger --records-of alice@example.com
"""

import logging
import uuid

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.db.models import Q

from apps.ledger.models import BazarRecord, DepositRecord, MealRecord
from apps.members.models import Member

logger = logging.getLogger(__name__)

ERASE_ALL_CONFIRMATION = 'erase all'


class Command(BaseCommand):
    help = 'Delete ledger data in bulk (members by name or without account, one member\'s records, or all records)'

    def add_arguments(self, parser):
        mode = parser.add_mutually_exclusive_group(required=True)
        mode.add_argument(
            '--member-name',
            help='Delete members with this name and all their records',
        )
        mode.add_argument(
            '--without-account',
            action='store_true',
            help='Delete members without a linked account and all their records',
        )
        mode.add_argument(
            '--all',
            action='store_true',
            help='Delete all meal, bazar and deposit records',
        )
        mode.add_argument(
            '--records-of',
            metavar='MEMBER',
            help='Delete all records of one member (email or id), keeping the member',
        )
        parser.add_argument(
            '--confirm',
            default='',
            help=f'Must be "{ERASE_ALL_CONFIRMATION}" when using --all',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be deleted without making changes',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        keep_members = False

        if options['all']:
            if options['confirm'] != ERASE_ALL_CONFIRMATION:
                raise CommandError(f'Type --confirm "{ERASE_ALL_CONFIRMATION}" to wipe all records.')
            members = None
        elif options['records_of'] is not None:
            members = self._find_member(options['records_of'])
            keep_members = True
        elif options['without_account']:
            members = Member.objects.filter(user__isnull=True)
        else:
            name = (options['member_name'] or '').strip()
            if not name:
                raise CommandError('--member-name must not be empty.')
            members = Member.objects.filter(name__iexact=name)

        counts = self._counts(members)
        self.stdout.write(
            f"\nMatched: {counts['members']} member(s), {counts['meals']} meal(s), "
            f"{counts['bazar']} bazar, {counts['deposits']} deposit(s)"
        )

        if members is not None and counts['members'] == 0:
            self.stdout.write(self.style.SUCCESS('No matching members. Nothing to delete.'))
            return

        if dry_run:
            self.stdout.write(self.style.WARNING('\n--dry-run mode: No changes made.'))
            return

        with transaction.atomic():
            self._delete(members, keep_members=keep_members)

        logger.warning("cleanup_ledger removed %s", counts)
        self.stdout.write(self.style.SUCCESS('\nCleanup complete.'))

    def _find_member(self, value):
        value = value.strip()
        if not value:
            raise CommandError('--records-of must not be empty.')
        try:
            member_id = uuid.UUID(value)
        except ValueError:
            member_id = None

        lookup = Q(email__iexact=value) | Q(user__email__iexact=value)
        if member_id is not None:
            lookup |= Q(pk=member_id)
        members = Member.objects.filter(lookup)
        if not members.exists():
            raise CommandError(f'No member found for "{value}".')
        if members.count() > 1:
            raise CommandError(f'"{value}" matches more than one member; use the member id.')
        return members

    def _record_querysets(self, members):
        querysets = [MealRecord.objects.all(), BazarRecord.objects.all(), DepositRecord.objects.all()]
        if members is None:
            return querysets
        return [qs.filter(member__in=members) for qs in querysets]

    def _counts(self, members):
        meals, bazar, deposits = self._record_querysets(members)
        return {
            'members': 0 if members is None else members.count(),
            'meals': meals.count(),
            'bazar': bazar.count(),
            'deposits': deposits.count(),
        }

    def _delete(self, members, keep_members=False):
        # Bazar first: it references deposits through linked_deposit
        meals, bazar, deposits = self._record_querysets(members)
        bazar.delete()
        deposits.delete()
        meals.delete()
        if members is not None and not keep_members:
            members.delete()
