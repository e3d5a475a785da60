"""
Matching receipt/realization lines to their parent document.

Lines written by the API carry a foreign key to their parent. Lines imported
from the old schema have an empty foreign key; they are attached to a
parent whose ``created_at`` is close enough to their own.
"""
from datetime import timedelta

RECEIPT_WINDOW = timedelta(minutes=5)
REALIZATION_DETAIL_WINDOW = timedelta(minutes=1)
REALIZATION_LIST_WINDOW = timedelta(hours=2)
INCOME_REPORT_WINDOW = timedelta(minutes=5)


def _orphans(item_model, parent_field, start, end):
    return item_model.objects.filter(
        **{f'{parent_field}__isnull': True, 'created_at__gte': start, 'created_at__lte': end}
    )


def items_for_parent(item_model, parent_field, parent, window, related=()):
    """Lines of a single parent: linked rows plus unlinked rows within ``window``"""
    linked = item_model.objects.filter(**{parent_field: parent})
    orphans = _orphans(item_model, parent_field, parent.created_at - window, parent.created_at + window)
    return list(
        (linked | orphans).select_related(*related).order_by('created_at', 'id')
    )


def items_for_parents(item_model, parent_field, parents, window, closest=False, related=()):
    """
    Map parent id -> list of lines for a page of parents.

    With ``closest=True`` an unlinked line goes to the nearest parent only;
    otherwise it is shared by every parent within ``window``.
    """
    parents = list(parents)
    grouped = {parent.pk: [] for parent in parents}
    if not parents:
        return grouped

    linked = item_model.objects.filter(**{f'{parent_field}__in': grouped.keys()})
    for item in linked.select_related(*related).order_by('created_at', 'id'):
        grouped[getattr(item, f'{parent_field}_id')].append(item)

    start = min(parent.created_at for parent in parents) - window
    end = max(parent.created_at for parent in parents) + window
    orphans = _orphans(item_model, parent_field, start, end).select_related(*related).order_by('created_at', 'id')
    for item in orphans:
        candidates = [p for p in parents if abs(item.created_at - p.created_at) <= window]
        if not candidates:
            continue
        if closest:
            nearest = min(candidates, key=lambda p: abs(item.created_at - p.created_at))
            grouped[nearest.pk].append(item)
        else:
            for parent in candidates:
                grouped[parent.pk].append(item)
    return grouped


def link_orphans(item_model, parent_model, parent_field, window):
    """
    Persist the time-window match: set the foreign key of every unlinked line
    that has a parent within ``window`` (nearest wins). Returns rows updated.
    """
    updated = 0
    for item in item_model.objects.filter(**{f'{parent_field}__isnull': True}).order_by('id'):
        candidates = (
            parent_model.objects
            .filter(created_at__gte=item.created_at - window, created_at__lte=item.created_at + window)
            .order_by('created_at')
        )
        nearest = min(candidates, key=lambda p: abs(item.created_at - p.created_at), default=None)
        if nearest is None:
            continue
        setattr(item, parent_field, nearest)
        item.save(update_fields=[parent_field])
        updated += 1
    return updated
