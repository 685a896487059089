# Copyright (c) Workledger.
# SPDX-License-Identifier: MIT
"""Base DTO (Application Layer).

Purpose:
    Canonical Pydantic base for all application-layer DTOs. Transport-agnostic.

Layer: application/schemas/dto
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseDTO(BaseModel):
    """Base class for application-layer DTOs.

    Notes:
        - Fields are snake_case in Python and camelCase on the wire
          (``workerId``, ``workUnits``); either spelling is accepted on input.
        - Unknown fields are rejected (``extra='forbid'``).
    """

    model_config = ConfigDict(
        extra="forbid",
        populate_by_name=True,
        str_strip_whitespace=True,
        alias_generator=to_camel,
    )
