"""
Parsing and serialization of browsing query params.

Canonical param order: q, sections, sort, pill, page. Defaults are omitted, so two
requests with the same filters always produce the same string (cache keys, shareable URLs).

Sync rules between pills and sorting:
- pill "new"               => sort=newest, pill=new
- pill "best" / "trending" => sort=newest (ranking ignores the chosen sort)
- sort price_asc/desc      => pill cleared
- sort newest              => pill kept only if it is "new"
Every transition resets page to 1.
"""
from typing import Any, List, Mapping, Optional, Tuple
from urllib.parse import urlencode

from storefront.domain.models.query import PillOption, QueryDescriptor, SortOption

_VALID_SORTS = {s.value: s for s in SortOption}
_VALID_PILLS = {p.value: p for p in PillOption}


def _as_str(value: Any) -> Optional[str]:
    # repeated keys (lists) are treated as absent
    return value if isinstance(value, str) else None


def _parse_positive_int(raw: str) -> Optional[int]:
    # plain ASCII digits only; int() alone would take "+5", "1_0" and non-ASCII digits
    raw = raw.strip()
    if not (raw.isascii() and raw.isdigit()):
        return None
    n = int(raw)
    return n if n > 0 else None


def _parse_sections(raw: Optional[str]) -> Tuple[int, ...]:
    if not raw:
        return ()
    ids = (_parse_positive_int(part) for part in raw.split(","))
    return tuple(n for n in ids if n is not None)


def parse_query(params: Mapping[str, Any]) -> QueryDescriptor:
    """Malformed values degrade to defaults, never raise."""
    q = (_as_str(params.get("q")) or "").strip()
    section_ids = _parse_sections(_as_str(params.get("sections")))
    sort = _VALID_SORTS.get(_as_str(params.get("sort")) or "", SortOption.NEWEST)
    pill = _VALID_PILLS.get(_as_str(params.get("pill")) or "")

    page_raw = _as_str(params.get("page"))
    page = (_parse_positive_int(page_raw) if page_raw else None) or 1

    return QueryDescriptor(q=q, section_ids=section_ids, sort=sort, pill=pill, page=page)


def serialize_query(d: QueryDescriptor) -> List[Tuple[str, str]]:
    params: List[Tuple[str, str]] = []
    if d.q:
        params.append(("q", d.q))
    if d.section_ids:
        params.append(("sections", ",".join(str(i) for i in sorted(d.section_ids))))
    if d.sort != SortOption.NEWEST:
        params.append(("sort", d.sort.value))
    if d.pill is not None:
        params.append(("pill", d.pill.value))
    if d.page > 1:
        params.append(("page", str(d.page)))
    return params


def to_query_string(d: QueryDescriptor) -> str:
    """Canonical, url-encoded query string without the leading '?'."""
    return urlencode(serialize_query(d))


def build_query_string(d: QueryDescriptor) -> str:
    qs = to_query_string(d)
    return f"?{qs}" if qs else ""


# --- state transitions --------------------------------------------------------

def apply_pill_change(current: QueryDescriptor, pill: Optional[PillOption]) -> QueryDescriptor:
    if pill is None:
        return current.model_copy(update={"pill": None, "page": 1})
    return current.model_copy(update={"pill": PillOption(pill), "sort": SortOption.NEWEST, "page": 1})


def apply_sort_change(current: QueryDescriptor, sort: SortOption) -> QueryDescriptor:
    sort = SortOption(sort)
    if sort in (SortOption.PRICE_ASC, SortOption.PRICE_DESC):
        pill = None
    else:
        pill = PillOption.NEW if current.pill == PillOption.NEW else None
    return current.model_copy(update={"sort": sort, "pill": pill, "page": 1})


def apply_section_toggle(current: QueryDescriptor, section_id: int) -> QueryDescriptor:
    ids = set(current.section_ids)
    if section_id in ids:
        ids.remove(section_id)
    else:
        ids.add(section_id)
    # model_copy skips validation, so keep the canonical ascending order here
    return current.model_copy(update={"section_ids": tuple(sorted(ids)), "page": 1})


def clear_filters(current: QueryDescriptor) -> QueryDescriptor:
    return QueryDescriptor()
