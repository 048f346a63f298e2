"""Equipment forecast helpers.

A forecast quantity of zero means "not needed": the pair is dropped rather
than stored as zero.
"""

from __future__ import annotations

from typing import Iterable

from race_calendar.models import ModelForecast
from race_calendar.shared import ValidationError


def check_quantity(model_id: str, quantity: object) -> int:
    """Return ``quantity`` if it is a non-negative int, else raise ValidationError."""
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError(
            f"forecast quantity for model {model_id} must be an integer, got {quantity!r}",
            field="model_forecast",
        )
    if quantity < 0:
        raise ValidationError(
            f"forecast quantity for model {model_id} must be >= 0, got {quantity}",
            field="model_forecast",
        )
    return quantity


def prune_forecast(forecast: Iterable[ModelForecast]) -> tuple[ModelForecast, ...]:
    """Drop zero entries and merge repeated model ids (last quantity wins)."""
    quantities: dict[str, int] = {}
    for item in forecast:
        quantities[item.model_id] = check_quantity(item.model_id, item.quantity)
    return tuple(ModelForecast(mid, qty) for mid, qty in quantities.items() if qty > 0)


def set_forecast_quantity(
    forecast: Iterable[ModelForecast],
    model_id: str,
    quantity: int,
) -> tuple[ModelForecast, ...]:
    """Return ``forecast`` with ``model_id`` set to ``quantity`` (0 removes it)."""
    qty = check_quantity(model_id, quantity)
    # Existing entries keep their position; a new model goes last.
    return prune_forecast([*forecast, ModelForecast(model_id, qty)])
