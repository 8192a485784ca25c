from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from fastapi.responses import JSONResponse, RedirectResponse
from starlette.responses import Response

from stereoscope.detection import TEMPLATE_PARAM, InvalidTemplateError, parse_template, uses_reserved_name


logger = logging.getLogger("stereoscope.expansion")


@dataclass(frozen=True)
class RedirectResult:
    location: str
    status_code: int = 302


def expand(template_text: str | None, submitted: Mapping[str, str]) -> RedirectResult:
    """
    Expand ``template_text`` with the submitted form values.

    Variables without a submitted value expand to nothing, as URI Template
    expansion prescribes for undefined variables.
    """

    template = parse_template(template_text)
    if uses_reserved_name(template_text):
        raise InvalidTemplateError(template_text, f"variable name `{TEMPLATE_PARAM}` is reserved")
    bindings = {name: value for name, value in submitted.items() if name != TEMPLATE_PARAM}
    return RedirectResult(location=template.expand(bindings))


def expansion_response(template_text: str | None, submitted: Mapping[str, str]) -> Response:
    try:
        result = expand(template_text, submitted)
    except InvalidTemplateError as exc:
        logger.warning("invalid_template template=%r reason=%s", exc.template, exc.reason)
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    logger.info("template_expanded template=%r location=%s", template_text, result.location)
    return RedirectResponse(url=result.location, status_code=result.status_code)
