"""
Order sheet parser.

Rebuilds the per-order state machine from one Order sheet row: current
stage, stage history with SLA delay flags, dispatch/delivery dates and the
client-facing prices. Line items are attached later by the reconciler.

Stage columns follow the pattern ``Stage_<Stage value without spaces>_StartDate``
and ``..._EndDate`` for every pipeline stage, plus a single
``Stage_Cancelled_StartDate``.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from ..constants import (
    CLIENT_COUNTRIES,
    DEFAULT_SLA_DAYS_PER_STAGE,
    PIPELINE_STAGES,
    OrderStatus,
    match_order_status,
    stage_end_column,
    stage_start_column,
)
from ..models import StageHistoryItem
from .dates import days_between, parse_date
from .fields import parse_number, row_to_record

logger = logging.getLogger(__name__)


SHEET_LABEL = "Order Data CSV"

REQUIRED_ORDER_HEADERS = [
    'OrderID',
    'ClientName',
    'OrderDate',
    'CurrentStage',
    'TotalFinalPrice',
]

CANCELLED_START_COLUMN = stage_start_column(OrderStatus.CANCELLED)


@dataclass
class OrderDraft:
    """Order fields taken from the Order sheet, before line items are merged."""

    id: str
    client_name: str
    client_country: str
    order_date: datetime
    current_stage: OrderStatus
    stage_history: List[StageHistoryItem] = field(default_factory=list)
    expected_delivery_date: Optional[datetime] = None
    expected_payment_date: Optional[datetime] = None
    actual_payment_date: Optional[datetime] = None
    actual_delivery_date: Optional[datetime] = None
    dispatch_date: Optional[datetime] = None
    client_moq: Optional[float] = None
    order_notes: Optional[str] = None
    reason_for_cancellation: Optional[str] = None
    # None when the cell is blank or not a number
    total_negotiated_price: Optional[float] = None
    total_final_price: Optional[float] = None
    sheet_row: int = 0


class OrderSheetParser:
    """
    Builds OrderDraft records from Order sheet rows.

    Usage:
        parser = OrderSheetParser(now=datetime.now())
        drafts, errors = parser.parse(headers, data_rows)
    """

    def __init__(
        self,
        now: Optional[datetime] = None,
        sla_days_per_stage: Optional[Dict[OrderStatus, int]] = None,
    ):
        self.now = now or datetime.now()
        self.sla_days_per_stage = dict(sla_days_per_stage or DEFAULT_SLA_DAYS_PER_STAGE)

    def parse(
        self,
        headers: Sequence[str],
        data_rows: Sequence[Sequence[str]],
    ) -> Tuple[Dict[str, OrderDraft], List[str]]:
        """
        Parse Order sheet data rows.

        Args:
            headers: Normalized header row
            data_rows: Rows after the header

        Returns:
            Tuple of (order ID -> OrderDraft in sheet order, errors)
        """
        drafts: Dict[str, OrderDraft] = {}
        errors: List[str] = []

        for row_index, row in enumerate(data_rows):
            record = row_to_record(headers, row)
            draft = self._parse_row(record, row_index + 2, errors)
            if draft is None:
                continue

            if draft.id in drafts:
                errors.append(
                    f"Order CSV (Row {draft.sheet_row}): Duplicate OrderID {draft.id} "
                    f"(first seen on row {drafts[draft.id].sheet_row}). Using the later row."
                )
            drafts[draft.id] = draft

        logger.info(f"Order sheet: {len(data_rows)} rows, {len(drafts)} orders")
        return drafts, errors

    def _parse_row(
        self,
        record: Dict[str, Optional[str]],
        sheet_row: int,
        errors: List[str],
    ) -> Optional[OrderDraft]:
        order_id = record.get('OrderID')
        if not order_id:
            errors.append(f"Order CSV (Row {sheet_row}): Missing OrderID.")
            return None

        context = f"Order CSV (OrderID: {order_id})"

        raw_stage = record.get('CurrentStage')
        current_stage = match_order_status(raw_stage)
        if current_stage is None:
            errors.append(
                f"{context}: Invalid CurrentStage value \"{raw_stage or ''}\". "
                f"Defaulting to '{OrderStatus.FRESH_ORDER.value}'."
            )
            current_stage = OrderStatus.FRESH_ORDER

        client_name = record.get('ClientName')
        if not client_name:
            errors.append(f"{context}: Missing ClientName.")
            client_name = ''

        raw_order_date = record.get('OrderDate')
        order_date = parse_date(raw_order_date)
        if order_date is None:
            if raw_order_date:
                errors.append(
                    f"{context}: Invalid OrderDate \"{raw_order_date}\". "
                    f"Using current date as fallback."
                )
            else:
                errors.append(f"{context}: Missing OrderDate. Using current date as fallback.")
            order_date = self.now

        draft = OrderDraft(
            id=order_id,
            client_name=client_name,
            client_country=record.get('ClientCountry') or CLIENT_COUNTRIES[0],
            order_date=order_date,
            current_stage=current_stage,
            expected_delivery_date=self._optional_date(record, 'ExpectedDeliveryDate', context, errors),
            expected_payment_date=self._optional_date(record, 'ExpectedPaymentDate', context, errors),
            actual_payment_date=self._optional_date(record, 'ActualPaymentDate', context, errors),
            order_notes=record.get('OrderNotes'),
            reason_for_cancellation=record.get('ReasonForCancellation'),
            total_negotiated_price=self._optional_number(record, 'TotalNegotiatedPrice', context, errors),
            total_final_price=self._optional_number(record, 'TotalFinalPrice', context, errors),
            sheet_row=sheet_row,
        )

        moq = self._optional_number(record, 'ClientMOQ', context, errors)
        draft.client_moq = moq if moq else None

        draft.stage_history = self._build_stage_history(record, draft, context, errors)
        self._check_stage_consistency(record, draft, errors)

        delivered = _find_stage(draft.stage_history, OrderStatus.DELIVERED)
        ready = _find_stage(draft.stage_history, OrderStatus.READY_FOR_DISPATCH)
        if delivered is not None:
            draft.dispatch_date = delivered.start_date
            draft.actual_delivery_date = delivered.end_date
        elif ready is not None and ready.end_date is not None:
            draft.dispatch_date = ready.end_date
        if current_stage == OrderStatus.CANCELLED:
            draft.dispatch_date = None

        return draft

    def _build_stage_history(
        self,
        record: Dict[str, Optional[str]],
        draft: OrderDraft,
        context: str,
        errors: List[str],
    ) -> List[StageHistoryItem]:
        history: List[StageHistoryItem] = []

        for stage in PIPELINE_STAGES:
            stage_context = f"Order CSV (OrderID: {draft.id}, Stage: {stage.value})"
            raw_start = record.get(stage_start_column(stage))
            raw_end = record.get(stage_end_column(stage))

            start = parse_date(raw_start)
            if raw_start and start is None:
                errors.append(f"{stage_context}: Invalid StartDate \"{raw_start}\".")
            end = parse_date(raw_end)
            if raw_end and end is None:
                errors.append(f"{stage_context}: Invalid EndDate \"{raw_end}\".")

            if start is None:
                if end is not None:
                    logger.debug(f"{stage_context}: end date without start date ignored")
                continue

            if end is not None and end < start:
                errors.append(
                    f"Warning (OrderID: {draft.id}): Stage '{stage.value}' ends "
                    f"({raw_end}) before it starts ({raw_start})."
                )

            sla = self.sla_days_per_stage.get(stage, 0)
            is_delayed = False
            if sla:
                if end is not None:
                    is_delayed = (days_between(start, end) or 0) > sla
                elif stage == draft.current_stage and stage != OrderStatus.PAID:
                    is_delayed = (days_between(start, self.now) or 0) > sla

            history.append(StageHistoryItem(
                stage=stage,
                start_date=start,
                end_date=end,
                is_delayed=is_delayed,
                notes=f"Exceeded SLA of {sla} days." if is_delayed else None,
            ))

        raw_cancelled = record.get(CANCELLED_START_COLUMN)
        cancelled_start = parse_date(raw_cancelled)
        if raw_cancelled and cancelled_start is None:
            errors.append(f"{context}: Invalid Cancelled Stage StartDate \"{raw_cancelled}\".")
        if cancelled_start is not None:
            history.append(StageHistoryItem(
                stage=OrderStatus.CANCELLED,
                start_date=cancelled_start,
                notes=draft.reason_for_cancellation,
            ))

        if not history:
            history.append(StageHistoryItem(
                stage=OrderStatus.FRESH_ORDER,
                start_date=draft.order_date,
            ))
            if draft.current_stage not in (OrderStatus.FRESH_ORDER, OrderStatus.CANCELLED):
                history.append(StageHistoryItem(
                    stage=draft.current_stage,
                    start_date=draft.order_date + timedelta(days=1),
                ))

        return history

    @staticmethod
    def _check_stage_consistency(
        record: Dict[str, Optional[str]],
        draft: OrderDraft,
        errors: List[str],
    ) -> None:
        has_cancel_entry = _find_stage(draft.stage_history, OrderStatus.CANCELLED) is not None
        if has_cancel_entry and draft.current_stage != OrderStatus.CANCELLED:
            errors.append(
                f"Warning (OrderID: {draft.id}): {CANCELLED_START_COLUMN} is set but "
                f"CurrentStage is '{draft.current_stage.value}'."
            )

        if draft.current_stage in PIPELINE_STAGES:
            current = _find_stage(draft.stage_history, draft.current_stage)
            if current is not None and current.end_date is not None:
                errors.append(
                    f"Warning (OrderID: {draft.id}): Current stage "
                    f"'{draft.current_stage.value}' already has an end date "
                    f"({record.get(stage_end_column(draft.current_stage))})."
                )

    @staticmethod
    def _optional_date(
        record: Dict[str, Optional[str]],
        column: str,
        context: str,
        errors: List[str],
    ) -> Optional[datetime]:
        raw = record.get(column)
        if not raw:
            return None
        parsed = parse_date(raw)
        if parsed is None:
            errors.append(f"{context}: Invalid {column} \"{raw}\".")
        return parsed

    @staticmethod
    def _optional_number(
        record: Dict[str, Optional[str]],
        column: str,
        context: str,
        errors: List[str],
    ) -> Optional[float]:
        raw = record.get(column)
        if not raw:
            return None
        value = parse_number(raw)
        if value is None:
            errors.append(f"{context}: Invalid {column} \"{raw}\".")
        return value


def _find_stage(history: Sequence[StageHistoryItem], stage: OrderStatus) -> Optional[StageHistoryItem]:
    for item in history:
        if item.stage == stage:
            return item
    return None
