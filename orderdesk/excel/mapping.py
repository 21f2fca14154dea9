from __future__ import annotations

import logging
import re
from collections.abc import Callable
from datetime import date, datetime
from typing import Any
from zoneinfo import ZoneInfo

import pandas as pd

from orderdesk.models.import_record import ImportRecord

"""Form export row -> ImportRecord mapping.

The export uses fixed Korean question texts as headers. HEADER_MAP is the one
place that ties them to record fields; nothing is inferred.

Reference fields (business registration file, product image, product drawing)
resolve in this order:
    hyperlink target (URL-shaped) -> cell text (URL-shaped) -> cell text -> None
"""

__all__ = [
    "HEADER_MAP",
    "FIELD_TO_HEADER",
    "REFERENCE_FIELDS",
    "PRIVACY_AGREED",
    "FIRST_TIME_BUYER",
    "FieldErrorCallback",
    "is_http_url",
    "resolve_reference",
    "parse_response_date",
    "map_row",
]

logger = logging.getLogger(__name__)

HEADER_MAP: dict[str, str] = {
    "응답일시": "response_date",
    "참여자": "participant_number",
    "성함 혹은 업체명(*)": "name_or_company",
    "연락처(*)": "contact",
    "이메일 ( 세금계산서 하실 시 필수)": "email",
    "사업자 등록증 ( 세금계산서 하실 시 필수 )": "business_registration_file",
    "개인정보 수집 동의(*)": "privacy_agreement",
    "처음이신가요? 구매한 적 있으신가요?(*)": "first_time_buyer",
    "주문하려는 상품에 대해 알려주세요:)(*)": "product_description",
    "제품의 사이즈를 알려주세요.(*)": "product_size",
    "두께를 알려주세요.(*)": "thickness",
    "재료를 알려주세요(*)": "material",
    "컬러를 알려주세요.(*)": "color",
    "수량은 몇개인가요?(*)": "quantity",
    "납품은 언제쯤 원하시나요?(*)": "desired_delivery",
    "제품을 설명할 수 있는 자료를 올려주세요.( 이미지 )": "product_image",
    "제품 도면을 올려주세요": "product_drawing",
    "문의사항을 적어주세요.(*)": "inquiry",
    "아크릴 맛집을 어느 경로를 통해 오셨는지 알려주시면 감사하겠습니다!(*)": "referral_source",
}

FIELD_TO_HEADER: dict[str, str] = {v: k for k, v in HEADER_MAP.items()}

REFERENCE_FIELDS: tuple[str, ...] = (
    "business_registration_file",
    "product_image",
    "product_drawing",
)

# 정확히 일치할 때만 True (일반적인 truthy 판정 아님)
PRIVACY_AGREED = "Y"
FIRST_TIME_BUYER = "처음입니다."

_URL_RE = re.compile(r"(http|https)://")
# 내보내기 형식만: "2024. 5. 3 오후 2:22:11", "2024년 5월 3일"
# ISO 형식(오프셋/Z 포함 가능)은 pandas 경로에서 시간대 변환 후 날짜 추출
_KO_DATE_RE = re.compile(r"^\s*(\d{4})\s*[.년]\s*(\d{1,2})\s*[.월]\s*(\d{1,2})")

FieldErrorCallback = Callable[[str, Exception], None]


def is_http_url(value: str | None) -> bool:
    return bool(value) and _URL_RE.search(value) is not None  # type: ignore[arg-type]


def _text(value: Any) -> str | None:
    """Cell value as text; None for empty cells and empty strings."""
    if value is None:
        return None
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    text = str(value)
    return text if text != "" else None


def resolve_reference(cell_value: Any, hyperlink: str | None) -> str | None:
    if hyperlink and is_http_url(hyperlink):
        return hyperlink
    text = _text(cell_value)
    if text and is_http_url(text):
        return text
    if text:
        return text
    return None


def _to_local_date(value: datetime, tz: ZoneInfo) -> date:
    if value.tzinfo is not None:
        value = value.astimezone(tz)
    return value.date()


def parse_response_date(value: Any, tz: ZoneInfo) -> date | str | None:
    """Calendar date of a response timestamp; the raw text if it does not parse."""
    if value is None:
        return None
    if isinstance(value, datetime):  # pd.Timestamp included
        return _to_local_date(value, tz)
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if not text:
        return None
    m = _KO_DATE_RE.match(text)
    if m:
        try:
            return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        except ValueError:
            pass
    parsed = pd.to_datetime(text, errors="coerce")
    if pd.isna(parsed):
        logger.warning("invalid date: %r (kept as text)", text)
        return text
    return _to_local_date(parsed.to_pydatetime(), tz)


def _participant_number(value: Any) -> int | None:
    text = _text(value)
    if text is None:
        return None
    number = float(text.replace(",", "").strip())
    if not number.is_integer():
        raise ValueError(f"participant number is not an integer: {text!r}")
    return int(number)


def map_row(
    row: dict[str, Any],
    hyperlinks: dict[str, str] | None = None,
    *,
    tz: ZoneInfo | None = None,
    on_field_error: FieldErrorCallback | None = None,
) -> ImportRecord:
    """Map one sheet row (header -> cell value) to an ImportRecord.

    A field whose conversion raises is set to None (False for the boolean
    fields) and reported through ``on_field_error``; the row is still mapped.
    """
    links = hyperlinks or {}
    zone = tz or ZoneInfo("UTC")

    def cell(name: str) -> Any:
        return row.get(FIELD_TO_HEADER[name])

    converters: dict[str, Callable[[], Any]] = {
        "response_date": lambda: parse_response_date(cell("response_date"), zone),
        "participant_number": lambda: _participant_number(cell("participant_number")),
        "privacy_agreement": lambda: _text(cell("privacy_agreement")) == PRIVACY_AGREED,
        "first_time_buyer": lambda: _text(cell("first_time_buyer")) == FIRST_TIME_BUYER,
    }
    for name in REFERENCE_FIELDS:
        converters[name] = (
            lambda n=name: resolve_reference(cell(n), links.get(FIELD_TO_HEADER[n]))
        )

    values: dict[str, Any] = {}
    for name in FIELD_TO_HEADER:
        convert = converters.get(name, lambda n=name: _text(cell(n)))
        try:
            values[name] = convert()
        except Exception as e:
            logger.debug("field=%s conversion failed: %s", name, e)
            values[name] = False if name in ("privacy_agreement", "first_time_buyer") else None
            if on_field_error is not None:
                on_field_error(name, e)
    return ImportRecord(**values)
