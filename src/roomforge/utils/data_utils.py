"""Turn result rows into list, table and chart payloads."""

from __future__ import annotations

import re
from typing import Any, Optional, Sequence

from roomforge.schemas.envelope import (
    ChartPayload,
    ListItem,
    ListPayload,
    TableColumn,
    TablePayload,
)
from roomforge.utils.chart import DEFAULT_HEIGHT, DEFAULT_WIDTH, build_quickchart_url
from roomforge.utils.entity_route import build_entity_path

LIST_ITEMS_LIMIT = 50
TABLE_ROWS_LIMIT = 50
CHART_TOP_N = 10
MAX_COLUMNS = 8

PATH_COLUMN = TableColumn(key="path", label="Chi tiết", type="url")

PRIORITY_KEYS = (
    "id", "name", "title", "price", "base_price_monthly", "area", "area_sqm",
    "count", "total", "created_at", "updated_at", "room", "post", "url", "link",
)

COLUMN_LABELS: dict[str, str] = {
    "base_price_monthly": "Giá thuê/tháng",
    "monthly_rent": "Tiền thuê/tháng",
    "deposit_amount": "Tiền cọc",
    "total_amount": "Tổng tiền",
    "amount": "Số tiền",
    "price": "Giá",
    "district_name": "Quận/Huyện",
    "province_name": "Tỉnh/Thành phố",
    "ward_name": "Phường/Xã",
    "address_line_1": "Địa chỉ",
    "area_sqm": "Diện tích (m²)",
    "max_occupancy": "Sức chứa",
    "room_number": "Số phòng",
    "room_type": "Loại phòng",
    "building_name": "Tên tòa nhà",
    "room_name": "Tên phòng",
    "name": "Tên",
    "title": "Tiêu đề",
    "description": "Mô tả",
    "status": "Trạng thái",
    "due_date": "Ngày đến hạn",
    "payment_date": "Ngày thanh toán",
    "created_at": "Ngày tạo",
    "updated_at": "Ngày cập nhật",
    "count": "Số lượng",
    "total": "Tổng",
    "avg": "Trung bình",
    "view_count": "Lượt xem",
    "id": "ID",
}

_TITLE_KEYS = ("title", "name", "room_name", "building_name")
_LINK_KEYS = ("url", "link", "href")
_IMAGE_KEYS = ("image_url", "imageurl", "image", "thumbnail")
_LABEL_KEY_PATTERN = re.compile(r"name|title|label|category|type|status|month|year|district|province", re.I)
_STAT_KEY_PATTERN = re.compile(r"count|sum|avg|total|min|max|value|revenue|rate", re.I)


def _lower_keys(row: dict[str, Any]) -> dict[str, Any]:
    return {str(k).lower(): v for k, v in row.items()}


def _first(row: dict[str, Any], keys: Sequence[str]) -> Optional[Any]:
    for key in keys:
        value = row.get(key)
        if value not in (None, ""):
            return value
    return None


def _is_numeric(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    if isinstance(value, str):
        try:
            float(value)
        except ValueError:
            return False
        return True
    return False


def is_list_like(rows: Sequence[dict[str, Any]]) -> bool:
    """Rows look like browsable entities: a title plus a link, image or id."""
    if not rows:
        return False
    keys = set(_lower_keys(rows[0]))
    has_title = any(k in keys for k in _TITLE_KEYS)
    has_target = any(k in keys for k in _LINK_KEYS + _IMAGE_KEYS) or "id" in keys or "slug" in keys
    return has_title and has_target


def infer_entity(row: dict[str, Any], entity_hint: Optional[str] = None) -> Optional[str]:
    explicit = row.get("entity")
    if explicit:
        return str(explicit)
    if entity_hint:
        return entity_hint
    identifier = str(_first(row, ("slug", "id")) or "")
    if not identifier:
        return None
    if "room-seeking" in identifier or "tim-phong" in identifier:
        return "room_seeking_post"
    if "post" in identifier:
        return "post"
    return "room"


def to_list_item(row: dict[str, Any], index: int, entity_hint: Optional[str] = None) -> ListItem:
    obj = _lower_keys(row)
    identifier = str(_first(obj, ("slug", "id", "uuid")) or index)
    entity = infer_entity(obj, entity_hint)
    description = obj.get("description")
    external = _first(obj, _LINK_KEYS)
    thumbnail = _first(obj, _IMAGE_KEYS)
    return ListItem(
        id=identifier,
        title=str(_first(obj, _TITLE_KEYS) or "Không có tiêu đề"),
        description=str(description) if description else None,
        thumbnail_url=str(thumbnail) if thumbnail else None,
        entity=entity,
        path=build_entity_path(entity, identifier) if entity else None,
        external_url=str(external) if external else None,
    )


def build_list_payload(rows: Sequence[dict[str, Any]], entity_hint: Optional[str] = None) -> ListPayload:
    items = [to_list_item(row, i, entity_hint) for i, row in enumerate(rows[:LIST_ITEMS_LIMIT])]
    return ListPayload(items=items, total=len(rows))


def column_label(key: str) -> str:
    return COLUMN_LABELS.get(key) or COLUMN_LABELS.get(key.lower()) or key.replace("_", " ").capitalize()


def infer_columns(rows: Sequence[dict[str, Any]]) -> list[TableColumn]:
    if not rows:
        return []
    columns = []
    for key, value in rows[0].items():
        if isinstance(value, bool):
            col_type = "boolean"
        elif isinstance(value, (int, float)):
            col_type = "number"
        elif re.search(r"url|link|href", key, re.I):
            col_type = "url"
        elif re.search(r"image|thumbnail", key, re.I):
            col_type = "image"
        elif re.search(r"(_at|_date)$", key, re.I):
            col_type = "date"
        else:
            col_type = "string"
        columns.append(TableColumn(key=key, label=column_label(key), type=col_type))
    return columns


def select_important_columns(
    columns: Sequence[TableColumn], rows: Sequence[dict[str, Any]]
) -> list[TableColumn]:
    """Keep at most ``MAX_COLUMNS`` non-empty scalar columns, priority keys first."""
    sample = rows[:TABLE_ROWS_LIMIT]

    def scalar(col: TableColumn) -> bool:
        value = rows[0].get(col.key) if rows else None
        return value is None or isinstance(value, (str, int, float, bool))

    def non_empty(col: TableColumn) -> bool:
        return any(r.get(col.key) not in (None, "") for r in sample)

    usable = [c for c in columns if scalar(c) and non_empty(c)]
    prioritized = [c for c in usable if c.key in PRIORITY_KEYS]
    prioritized += [c for c in usable if c.key not in PRIORITY_KEYS]
    return prioritized[:MAX_COLUMNS]


def _cell(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


def _row_path(row: dict[str, Any], entity_hint: str) -> Optional[str]:
    identifier = _first(_lower_keys(row), ("slug", "id"))
    return build_entity_path(entity_hint, str(identifier)) if identifier else None


def build_table_payload(rows: Sequence[dict[str, Any]], entity_hint: Optional[str] = None) -> TablePayload:
    columns = select_important_columns(infer_columns(rows), rows)
    preview = rows[:TABLE_ROWS_LIMIT]
    table_rows = [{c.key: _cell(row.get(c.key)) for c in columns} for row in preview]
    paths = [_row_path(row, entity_hint) for row in preview] if entity_hint else []
    if any(paths):
        columns = [c for c in columns if c.key != PATH_COLUMN.key] + [PATH_COLUMN]
        for cells, path in zip(table_rows, paths):
            cells[PATH_COLUMN.key] = path
    return TablePayload(columns=columns, rows=table_rows, preview_limit=TABLE_ROWS_LIMIT)


def try_build_chart(
    rows: Sequence[dict[str, Any]],
    query: str = "",
    chart_type: Optional[str] = None,
) -> Optional[ChartPayload]:
    """Build a chart when rows are (label, number) pairs; ``None`` otherwise."""
    if not rows:
        return None
    sample = rows[0]
    keys = list(sample.keys())
    numeric_keys = [k for k in keys if _is_numeric(sample[k])]
    if not numeric_keys:
        return None
    label_key = next((k for k in keys if _LABEL_KEY_PATTERN.search(k) and k not in numeric_keys), None)
    if label_key is None:
        label_key = next((k for k in keys if k not in numeric_keys), None)
    if label_key is None:
        return None

    stat_like = any(_STAT_KEY_PATTERN.search(k) for k in keys)
    if not stat_like and len(numeric_keys) / len(keys) < 0.6:
        return None

    value_key = next((k for k in numeric_keys if _STAT_KEY_PATTERN.search(k)), numeric_keys[0])
    pairs = []
    for row in rows:
        raw_label = row.get(label_key)
        label = str(raw_label).strip() if raw_label not in (None, "") else "Không xác định"
        try:
            value = float(row.get(value_key))
        except (TypeError, ValueError):
            value = 0.0
        pairs.append((label, value))

    chart_type = chart_type or _detect_chart_type(query, len(pairs))
    if chart_type in ("pie", "doughnut"):
        pairs = [p for p in pairs if p[1] > 0]
    if not pairs:
        return None
    if chart_type != "line":
        pairs.sort(key=lambda p: p[1], reverse=True)
    top = pairs[:CHART_TOP_N]

    url = build_quickchart_url(
        labels=[p[0] for p in top],
        data=[p[1] for p in top],
        dataset_label=column_label(value_key),
        chart_type=chart_type,
    )
    return ChartPayload(
        url=url,
        width=DEFAULT_WIDTH,
        height=DEFAULT_HEIGHT,
        alt=f"Chart (Top {CHART_TOP_N})",
        chart_type=chart_type,
    )


def _detect_chart_type(query: str, categories: int) -> str:
    q = query.lower()
    if re.search(r"biểu đồ tròn|pie|tỉ lệ|tỷ lệ|phần trăm|percentage", q):
        return "pie" if categories <= 5 else "doughnut"
    if re.search(r"biểu đồ đường|line|theo thời gian|theo tháng|theo năm|xu hướng|trend", q):
        return "line"
    return "bar"
