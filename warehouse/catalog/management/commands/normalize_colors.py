from django.core.management.base import BaseCommand
from django.db import transaction

from warehouse.catalog.colors import get_hex_from_name, normalize_color_name
from warehouse.catalog.models import Color
from warehouse.core.cache_signals import invalidate_stock_cache_manual, suspend_cache_signals


class Command(BaseCommand):
    help = 'Bring color names to their dictionary spelling and fill in hex codes (e.g., "белый" -> "Белый", #FFFFFF)'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Run without making changes to see what would be updated',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        if dry_run:
            self.stdout.write(self.style.WARNING('DRY RUN MODE - No changes will be made'))

        colors = list(Color.objects.order_by('id'))
        taken = {color.name for color in colors}
        updated_count = 0
        skipped_count = 0

        self.stdout.write(f'Found {len(colors)} colors to process')

        with suspend_cache_signals(), transaction.atomic():
            for color in colors:
                new_name = normalize_color_name(color.name)
                new_hex = get_hex_from_name(color.name)
                if new_name == color.name and new_hex == color.hex_code:
                    continue
                if new_name != color.name and new_name in taken:
                    # Another row already has the dictionary name; only fix the hex code
                    skipped_count += 1
                    self.stdout.write(self.style.WARNING(
                        f'  Color {color.id} "{color.name}": name "{new_name}" is taken, keeping name'
                    ))
                    new_name = color.name
                    if new_hex == color.hex_code:
                        continue

                self.stdout.write(f'  {color.id}: "{color.name}" {color.hex_code or "-"} -> "{new_name}" {new_hex}')
                updated_count += 1
                if dry_run:
                    continue
                taken.discard(color.name)
                taken.add(new_name)
                color.name = new_name
                color.hex_code = new_hex
                color.save(update_fields=['name', 'hex_code', 'updated_at'])
        if updated_count and not dry_run:
            invalidate_stock_cache_manual()

        self.stdout.write(self.style.SUCCESS(
            f'Done: {updated_count} updated, {skipped_count} name conflicts'
            + (' (dry run)' if dry_run else '')
        ))
