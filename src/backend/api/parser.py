from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from common.audit_rules.models import ConversionResult, ParserStatus
from common.audit_rules.parser import (
    EMPTY_INSTRUCTION_ERROR,
    RECOVERY_SUGGESTIONS,
    InstructionParser,
    is_empty_instruction,
)

from .deps import get_instruction_parser


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/parser", tags=["parser"])


class ParseRequest(BaseModel):
    instruction: Optional[str] = None


@router.get("/status", response_model=ParserStatus)
def parser_status(parser: InstructionParser = Depends(get_instruction_parser)):
    return parser.get_status()


@router.post("/parse")
def parse_instruction(
    body: ParseRequest,
    parser: InstructionParser = Depends(get_instruction_parser),
) -> Any:
    if is_empty_instruction(body.instruction):
        failure = ConversionResult.failure(EMPTY_INSTRUCTION_ERROR, ["Please provide a clear audit instruction"])
        return JSONResponse(status_code=400, content=failure.to_payload())

    try:
        result = parser.parse_instruction(body.instruction)
    except Exception:
        logger.exception("Parse instruction error")
        failure = ConversionResult.failure("Failed to parse instruction", RECOVERY_SUGGESTIONS)
        return JSONResponse(status_code=500, content=failure.to_payload())
    return JSONResponse(status_code=200, content=result.to_payload())
