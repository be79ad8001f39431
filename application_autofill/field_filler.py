"""Validate values against a field's options and dispatch to the right protocol."""

import logging
from typing import Optional

from .input_simulator import InputSimulator
from .models import FieldType, FormField
from .option_matching import native_option_exists, option_exists

logger = logging.getLogger(__name__)


class FieldFiller:
    def __init__(self, simulator: InputSimulator):
        self.logger = logger
        self.simulator = simulator

    async def validate(self, field: FormField, value: Optional[str]) -> bool:
        """True when a select-like value is present among the field's options."""
        if not value:
            return False
        if field.field_type == FieldType.NATIVE_SELECT:
            options = await self.simulator.read_select_options(field.element)
            return native_option_exists(options, value)
        if field.field_type.is_select_like:
            return option_exists(field.options or (), value)
        return True

    async def fill(self, field: FormField, value: str, index_based: bool = False) -> bool:
        """Commit a value using the protocol for the field's type."""
        self.logger.debug(f"Filling '{field.label}' ({field.field_type.value}) with '{value}'"
                          f"{' [index]' if index_based else ''}")
        try:
            if field.field_type in (FieldType.TEXT, FieldType.TEXTAREA):
                return await self.simulator.fill_input(field.element, value)
            if field.field_type == FieldType.NATIVE_SELECT:
                return await self.simulator.fill_select(field.element, value, index_based)
            if field.field_type == FieldType.VIRTUAL_SELECT:
                return await self.simulator.fill_virtual_select(field.element, value, index_based)
            if field.field_type == FieldType.MULTI_VIRTUAL_SELECT:
                return await self.simulator.fill_multi_virtual_select(field.element, value, index_based)
            if field.field_type == FieldType.CHECKBOX:
                return await self.simulator.fill_checkbox(field.element, value, index_based)
            if field.field_type == FieldType.RADIO:
                return await self.simulator.fill_radio(field.element, value, index_based)
        except Exception as e:
            self.logger.warning(f"Error filling '{field.label}': {e}")
            return False

        self.logger.warning(f"Unknown field type: {field.field_type}")
        return False
