import re

from unidecode import unidecode

from francetvpy.schemas.types import RunConfig


def parse_iso_duration(duration_str: str) -> float:
    """
    Parsea una duración ISO 8601 (ej: PT1H2M10.5S) a segundos totales.
    """
    if not duration_str:
        return 0.0

    pattern = re.compile(
        r"P(?:(?P<days>\d+)D)?T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+(?:\.\d+)?)S)?"
    )
    match = pattern.match(duration_str)
    if not match:
        return 0.0

    data = match.groupdict(default="0")
    return (
        int(data["days"]) * 86400
        + int(data["hours"]) * 3600
        + int(data["minutes"]) * 60
        + float(data["seconds"])
    )


def normalize_windows_name(name: str) -> str:
    invalid_chars = r'[<>:"/\\|?*\x00-\x1F]'
    name = re.sub(invalid_chars, "_", name)
    name = name.rstrip(" .")
    if len(name) == 0:
        raise ValueError("Invalid name")
    return name


def build_filename(title: str, pre_title: str, additional_title: str) -> str:
    """`{title} - {preTitle} - {additionalTitle}`, sin espacios en preTitle."""
    pre_title = pre_title.replace(" ", "")
    return f"{title} - {pre_title} - {additional_title}"


def safe_filename(filename: str, config: RunConfig) -> str:
    """Aplica las opciones de limpieza de nombres configuradas."""
    if config.ascii_filenames:
        filename = unidecode(filename)
    if config.sanitize_filenames:
        filename = normalize_windows_name(filename)
    return filename

