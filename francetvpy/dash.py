import logging
import math
import xml.etree.ElementTree as ET
from typing import Any, List, Optional
from urllib.parse import urljoin

from francetvpy.utils import parse_iso_duration

logger = logging.getLogger(__name__)

NAMESPACES = {"mpd": "urn:mpeg:dash:schema:mpd:2011"}


class XmlNode:
    """Clase base para envolver elementos XML y facilitar la extracción segura."""

    def __init__(self, element: ET.Element, base_url: str = ""):
        self._el = element
        self._base_url = base_url

    def _attr(self, name: str, default: Any = None, cast_type: type = str) -> Any:
        """Extrae un atributo de forma segura y lo tipa."""
        val = self._el.get(name)
        if val is None:
            return default
        try:
            return cast_type(val)
        except (ValueError, TypeError):
            logger.warning(
                f"Error casteando atributo '{name}' con valor '{val}' a {cast_type}"
            )
            return default

    def _find_children(self, tag_name: str) -> List[ET.Element]:
        """Busca hijos directos usando el namespace MPD por defecto."""
        return self._el.findall(f"mpd:{tag_name}", NAMESPACES)

    def _find_child(self, tag_name: str) -> Optional[ET.Element]:
        return self._el.find(f"mpd:{tag_name}", NAMESPACES)

    @property
    def base_url(self) -> str:
        """Resuelve la BaseURL acumulativa (MPD -> Period -> ...)"""
        node = self._find_child("BaseURL")
        local_base = node.text.strip() if node is not None and node.text else ""

        if local_base:
            return urljoin(self._base_url, local_base)
        return self._base_url


class SegmentTemplate(XmlNode):
    def __init__(
        self, element: ET.Element, base_url: str = "", period_duration: float = 0.0
    ):
        super().__init__(element, base_url)
        self._period_duration = period_duration

    @property
    def initialization(self) -> str:
        return self._attr("initialization", "")

    @property
    def media(self) -> str:
        return self._attr("media", "")

    @property
    def start_number(self) -> int:
        return self._attr("startNumber", 1, int)

    @property
    def timescale(self) -> int:
        return self._attr("timescale", 1, int)

    @property
    def duration(self) -> int:
        return self._attr("duration", 0, int)

    @staticmethod
    def _fill(pattern: str, representation_id: str, bandwidth: int) -> str:
        return pattern.replace("$RepresentationID$", str(representation_id)).replace(
            "$Bandwidth$", str(bandwidth)
        )

    def initialization_url(self, representation_id: str, bandwidth: int = 0) -> str:
        if not self.initialization:
            return ""
        return urljoin(
            self._base_url, self._fill(self.initialization, representation_id, bandwidth)
        )

    def generate_segment_urls(self, representation_id: str, bandwidth: int = 0) -> List[str]:
        segments = []
        media_pattern = self._fill(self.media, representation_id, bandwidth)
        current_number = self.start_number

        timeline = self._find_child("SegmentTimeline")
        if timeline is not None:
            current_time = 0
            for s in timeline.findall("mpd:S", NAMESPACES):
                if s.get("t") is not None:
                    current_time = int(s.get("t"))
                duration = int(s.get("d", 0))
                repeat = int(s.get("r", 0))
                for _ in range(repeat + 1):
                    url_rel = media_pattern.replace(
                        "$Number$", str(current_number)
                    ).replace("$Time$", str(current_time))
                    segments.append(urljoin(self._base_url, url_rel))
                    current_number += 1
                    current_time += duration
            return segments

        # Sin timeline: segmentos de duración fija hasta cubrir el periodo
        if not self.duration or not self._period_duration:
            logger.warning("SegmentTemplate sin timeline ni duración, sin segmentos.")
            return segments

        count = math.ceil(self._period_duration * self.timescale / self.duration)
        for number in range(current_number, current_number + count):
            url_rel = media_pattern.replace("$Number$", str(number))
            segments.append(urljoin(self._base_url, url_rel))
        return segments


class Representation(XmlNode):
    def __init__(
        self,
        element: ET.Element,
        base_url: str = "",
        parent_template: Optional[ET.Element] = None,
        period_duration: float = 0.0,
    ):
        super().__init__(element, base_url)
        self._parent_template = parent_template
        self._period_duration = period_duration

    @property
    def id(self) -> str:
        return self._attr("id")

    @property
    def bandwidth(self) -> int:
        return self._attr("bandwidth", 0, int)

    @property
    def width(self) -> Optional[int]:
        return self._attr("width", None, int)

    @property
    def height(self) -> Optional[int]:
        return self._attr("height", None, int)

    @property
    def codecs(self) -> str:
        return self._attr("codecs", "")

    def _template(self) -> Optional[SegmentTemplate]:
        # DASH permite definir el SegmentTemplate en el AdaptationSet padre
        tmpl_node = self._find_child("SegmentTemplate")
        if tmpl_node is None:
            tmpl_node = self._parent_template
        if tmpl_node is None:
            return None
        return SegmentTemplate(tmpl_node, self.base_url, self._period_duration)

    def get_segments(self) -> List[str]:
        template = self._template()
        if template is not None:
            return template.generate_segment_urls(self.id, self.bandwidth)
        return []

    @property
    def media_url(self) -> str:
        """URL de la pista cuando viene en un solo archivo (BaseURL propia)."""
        if self._find_child("BaseURL") is None:
            return ""
        return self.base_url

    @property
    def initialization_url(self) -> str:
        template = self._template()
        if template is not None:
            return template.initialization_url(self.id, self.bandwidth)
        return ""


class AdaptationSet(XmlNode):
    def __init__(
        self, element: ET.Element, base_url: str = "", period_duration: float = 0.0
    ):
        super().__init__(element, base_url)
        self._period_duration = period_duration

    @property
    def mime_type(self) -> str:
        return self._attr("mimeType", "")

    @property
    def content_type(self) -> str:
        return self._attr("contentType", "")

    @property
    def lang(self) -> str:
        return self._attr("lang", "und")

    @property
    def is_video(self) -> bool:
        return "video" in self.mime_type or self.content_type == "video"

    @property
    def is_audio(self) -> bool:
        return "audio" in self.mime_type or self.content_type == "audio"

    @property
    def is_text(self) -> bool:
        return (
            self.content_type == "text"
            or self.mime_type.startswith("text/")
            or "ttml" in self.mime_type
            or "vtt" in self.mime_type
        )

    def get_representations(self) -> List[Representation]:
        return [
            Representation(
                el,
                self.base_url,
                self._find_child("SegmentTemplate"),
                self._period_duration,
            )
            for el in self._find_children("Representation")
        ]

    def get_best_representation(self) -> Optional[Representation]:
        reps = self.get_representations()
        if not reps:
            logger.warning(f"AdaptationSet ({self.mime_type}) sin representaciones.")
            return None

        best = sorted(reps, key=lambda r: r.bandwidth, reverse=True)[0]
        if self.is_video:
            logger.info(
                f"Mejor VIDEO: {best.width}x{best.height} (ID: {best.id}, BW: {best.bandwidth})"
            )
        else:
            logger.info(f"Mejor {self.content_type or self.mime_type}: ID {best.id} (BW: {best.bandwidth})")
        return best


class Period(XmlNode):
    def __init__(
        self, element: ET.Element, base_url: str = "", presentation_duration: float = 0.0
    ):
        super().__init__(element, base_url)
        self._presentation_duration = presentation_duration

    @property
    def id(self) -> str:
        return self._attr("id")

    @property
    def start(self) -> str:
        return self._attr("start")

    @property
    def duration_seconds(self) -> float:
        duration = parse_iso_duration(self._attr("duration", ""))
        return duration or self._presentation_duration

    def get_adaptation_sets(
        self, type_filter: Optional[str] = None
    ) -> List[AdaptationSet]:
        sets = [
            AdaptationSet(el, self.base_url, self.duration_seconds)
            for el in self._find_children("AdaptationSet")
        ]
        if type_filter == "video":
            return [a for a in sets if a.is_video]
        elif type_filter == "audio":
            return [a for a in sets if a.is_audio]
        elif type_filter == "text":
            return [a for a in sets if a.is_text]
        return sets


class DashManifest:
    def __init__(self, xml_content: str, source_url: str = ""):
        # Registramos namespaces para que ElementTree no se queje al escribir o buscar
        for prefix, uri in NAMESPACES.items():
            ET.register_namespace(prefix, uri)

        self._root = ET.fromstring(xml_content)
        self._source_url = source_url

    @property
    def base_url(self) -> str:
        node = self._root.find("mpd:BaseURL", NAMESPACES)
        if node is not None and node.text:
            val = node.text.strip()
            if self._source_url:
                return urljoin(self._source_url, val)
            return val
        return self._source_url

    @property
    def duration_seconds(self) -> float:
        return parse_iso_duration(self._root.get("mediaPresentationDuration", ""))

    def get_periods(self) -> List[Period]:
        return [
            Period(el, self.base_url, self.duration_seconds)
            for el in self._root.findall("mpd:Period", NAMESPACES)
        ]

    def get_content_period(self) -> Period:
        periods = self.get_periods()
        if not periods:
            raise ValueError("El manifiesto no tiene periodos.")
        # El contenido es el periodo más largo, los cortos suelen ser publicidad
        return max(periods, key=lambda p: p.duration_seconds)
