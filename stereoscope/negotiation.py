from __future__ import annotations


def _quality(parameters: list[str]) -> float | None:
    for parameter in parameters:
        name, _, value = parameter.partition("=")
        if name.strip().lower() != "q":
            continue
        try:
            quality = float(value.strip())
        except ValueError:
            return None
        if not 0.0 <= quality <= 1.0:
            return None
        return quality
    return 1.0


def accepted_media_types(accept_header: str | None) -> list[str]:
    """
    Media types listed in an ``Accept`` header, best first.

    Entries with ``q=0`` or an unparseable quality are not acceptable and are
    dropped. Ties keep header order.
    """

    ranked: list[tuple[float, int, str]] = []
    for position, entry in enumerate((accept_header or "").split(",")):
        media_range, *parameters = entry.split(";")
        media_range = media_range.strip().lower()
        if not media_range:
            continue

        quality = _quality(parameters)
        if not quality:
            continue
        ranked.append((-quality, position, media_range))

    return [media_range for _, _, media_range in sorted(ranked)]


def client_accepts(accept_header: str | None, media_type: str) -> bool:
    return media_type.strip().lower() in accepted_media_types(accept_header)
