"""
Feed payload normalization.

The iOS and Android top-100 feeds do not agree on a record layout: ids may
live under ``app_id``, ``id`` or ``package_name``, versions under
``appVersion`` or ``version``, and the list itself may be bare, wrapped in
``{"data": [...]}`` / ``{"games": [...]}`` or grouped into sub-lists.  The
helpers here reduce any of those shapes to canonical game records::

    records = normalize_feed(response.json())
    games = [map_game_payload(raw, 'ios') for raw in records]

Each candidate key list is ordered by priority and kept as module data.
"""
from typing import Any, Dict, List, Mapping, Optional, Sequence

STORE_ID_KEYS = (
    'storeId', 'store_id',
    'app_id', 'id', 'appId',
    'package_name', 'packageName',
    'bundle_id', 'bundleId',
)
PUBLISHER_ID_KEYS = ('publisherId', 'publisher_id')
BUNDLE_ID_KEYS = ('bundleId', 'bundle_id')
APP_VERSION_KEYS = ('appVersion', 'app_version', 'version')

# Wrapper keys checked, in order, when a feed body is an object.
FEED_LIST_KEYS = ('data', 'games')


def pick_first_value(*candidates: Any) -> Any:
    """Return the first candidate that is neither ``None`` nor ``''``.

    ``0`` and ``False`` count as values.  Returns ``None`` when nothing
    qualifies.
    """
    for candidate in candidates:
        if candidate is not None and candidate != '':
            return candidate
    return None


def resolve_field(raw: Mapping[str, Any], keys: Sequence[str]) -> Any:
    """Apply :func:`pick_first_value` to ``raw[key]`` for each of *keys*."""
    return pick_first_value(*(raw.get(key) for key in keys))


def _to_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def map_game_payload(raw: Any, platform: str) -> Dict[str, Any]:
    """Map one raw feed record to the canonical game shape.

    Args:
        raw:      Record from a feed.  Anything that is not a mapping is
                  treated as an empty record.
        platform: ``'ios'`` or ``'android'``; never read from *raw*.

    Returns:
        Dict with ``publisherId``, ``name``, ``platform``, ``storeId``,
        ``bundleId``, ``appVersion`` and ``isPublished``.  ``storeId`` is
        ``None`` when no identifier could be found.
    """
    if not isinstance(raw, Mapping):
        raw = {}

    return {
        'publisherId': _to_str(resolve_field(raw, PUBLISHER_ID_KEYS)),
        'name': raw.get('name') or '',
        'platform': platform,
        'storeId': _to_str(resolve_field(raw, STORE_ID_KEYS)),
        'bundleId': _to_str(resolve_field(raw, BUNDLE_ID_KEYS)),
        'appVersion': _to_str(resolve_field(raw, APP_VERSION_KEYS)),
        # An explicit false/null is kept; only a missing key defaults to True.
        'isPublished': raw['isPublished'] if 'isPublished' in raw else True,
    }


def extract_records(payload: Any) -> List[Any]:
    """Return the record list carried by a decoded feed body.

    Accepts a bare list, or an object with a list under ``data`` or
    ``games``.  Any other shape yields an empty list.
    """
    if isinstance(payload, list):
        return payload
    if isinstance(payload, Mapping):
        for key in FEED_LIST_KEYS:
            value = payload.get(key)
            if isinstance(value, list):
                return value
    return []


def flatten_records(records: List[Any]) -> List[Any]:
    """Flatten one level when the first element is itself a list.

    Only the first element decides.  When flattening, list elements are
    spliced in and any other element is kept as-is.
    """
    if not records or not isinstance(records[0], list):
        return records
    flat: List[Any] = []
    for item in records:
        if isinstance(item, list):
            flat.extend(item)
        else:
            flat.append(item)
    return flat


def normalize_feed(payload: Any) -> List[Any]:
    """Return the flat list of raw game records in a feed body.  Never raises."""
    return flatten_records(extract_records(payload))
