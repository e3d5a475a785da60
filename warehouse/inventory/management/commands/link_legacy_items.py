from django.core.management.base import BaseCommand
from django.db import transaction

from warehouse.core.cache_signals import invalidate_stock_cache_manual, suspend_cache_signals
from warehouse.inventory.linking import RECEIPT_WINDOW, REALIZATION_LIST_WINDOW, link_orphans
from warehouse.inventory.models import Receipt, ReceiptItem, Realization, RealizationItem


class Command(BaseCommand):
    help = 'Fill in receipt_id / realization_id on lines imported without one, matching the nearest document by time'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Report how many lines would be linked without saving',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        if dry_run:
            self.stdout.write(self.style.WARNING('DRY RUN MODE - No changes will be made'))

        orphan_receipt_lines = ReceiptItem.objects.filter(receipt__isnull=True).count()
        orphan_realization_lines = RealizationItem.objects.filter(realization__isnull=True).count()
        self.stdout.write(
            f'Unlinked lines: {orphan_receipt_lines} receipt, {orphan_realization_lines} realization'
        )

        with suspend_cache_signals(), transaction.atomic():
            receipts_linked = link_orphans(ReceiptItem, Receipt, 'receipt', RECEIPT_WINDOW)
            realizations_linked = link_orphans(
                RealizationItem, Realization, 'realization', REALIZATION_LIST_WINDOW
            )
            if dry_run:
                transaction.set_rollback(True)
        if not dry_run:
            invalidate_stock_cache_manual()

        self.stdout.write(self.style.SUCCESS(
            f'Linked {receipts_linked} receipt lines and {realizations_linked} realization lines'
            + (' (dry run)' if dry_run else '')
        ))
