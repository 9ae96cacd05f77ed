from typing import Optional


class FranceTVError(Exception):
    """Error base de francetvpy."""


class HTTPError(FranceTVError):
    """Fallo de transporte o status distinto de 200 al pedir una página."""

    def __init__(self, url: str, status_code: Optional[int] = None, reason: str = ""):
        self.url = url
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"No se pudo descargar {url}: {status_code} {reason}".strip())


class ExtractionError(FranceTVError):
    """La página no contiene datos del reproductor utilizables."""


class NoPlayerData(ExtractionError):
    def __init__(self, message: str = "no se encontraron datos del reproductor"):
        super().__init__(message)


class MissingPlayerJSONData(ExtractionError):
    def __init__(self, message: str = "no se encontró el JSON del reproductor"):
        super().__init__(message)


class BadPlayerJSONData(ExtractionError):
    def __init__(self, fragment: str, reason: str = ""):
        self.fragment = fragment
        self.reason = reason
        super().__init__(f"JSON del reproductor inválido: {reason}\n{fragment}")


class APIError(FranceTVError):
    def __init__(self, url: str, status_code: Optional[int] = None, reason: str = ""):
        self.url = url
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"Fallo en la API de lectura {url}: {status_code} {reason}".strip())


class DecodeError(FranceTVError):
    def __init__(self, body: str, reason: str = ""):
        self.body = body
        self.reason = reason
        super().__init__(
            f"No se pudo interpretar la respuesta de la API\nerr: {reason}\nbody: {body}"
        )


class TokenError(FranceTVError):
    def __init__(self, url: str, status_code: Optional[int] = None, reason: str = ""):
        self.url = url
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"Stream no disponible en {url}: {status_code} {reason}".strip())


class UnsupportedFormat(FranceTVError):
    def __init__(self, filename: str, stream_format: str):
        self.filename = filename
        self.stream_format = stream_format
        super().__init__(f"{filename} está en un formato no soportado: {stream_format}")


class PaginationParseError(FranceTVError):
    def __init__(self, url: str):
        self.url = url
        super().__init__(f"No se pudo obtener la página siguiente de {url}")


class DownloadError(FranceTVError):
    """Fallo de un worker de descarga."""
