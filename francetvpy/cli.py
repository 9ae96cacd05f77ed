"""
Descarga episodios de france.tv.

Uso:
    python -m francetvpy -url https://www.france.tv/france-2/.../episode.html
    python -m francetvpy -url https://www.france.tv/.../toutes-les-videos/ -all
    python -m francetvpy -url ... -m3u8 -subsOnly
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from francetvpy.logging_config import setup_logging
from francetvpy.pipeline import Pipeline
from francetvpy.schemas.types import PageSchema, RunConfig, StreamFormat
from francetvpy.services.download_queue import DownloadQueue

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="francetvpy",
        description="Descarga episodios (o colecciones completas) de france.tv",
        allow_abbrev=False,
    )
    parser.add_argument("-url", "--url", dest="url", help="URL de la página a descargar")
    parser.add_argument(
        "-all",
        "--all",
        dest="download_all",
        action="store_true",
        help="Descargar todos los episodios si la página contiene varios videos",
    )
    parser.add_argument(
        "-subsOnly",
        "--subs-only",
        dest="subs_only",
        action="store_true",
        help="Descargar solo los subtítulos",
    )
    parser.add_argument(
        "-debug", "--debug", dest="debug", action="store_true", help="Modo debug"
    )
    parser.add_argument(
        "-m3u8",
        "--m3u8",
        dest="hls",
        action="store_true",
        help="Usar HLS/m3u8 en lugar de DASH",
    )
    parser.add_argument(
        "--output-dir", type=Path, default=Path.cwd(), help="Directorio de salida"
    )
    parser.add_argument("--workers", type=int, default=4, help="Descargas en paralelo")
    parser.add_argument(
        "--max-pages", type=int, default=50, help="Límite de páginas de una colección"
    )
    parser.add_argument(
        "--timeout", type=float, default=30.0, help="Timeout de cada petición (segundos)"
    )
    parser.add_argument(
        "--sanitize-filenames",
        action="store_true",
        help="Reemplazar caracteres inválidos en Windows",
    )
    parser.add_argument(
        "--ascii-filenames",
        action="store_true",
        help="Transliterar los nombres de archivo a ASCII",
    )
    parser.add_argument(
        "--schema",
        type=Path,
        help="JSON con selectores alternativos del sitio (PageSchema)",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> RunConfig:
    page_schema = PageSchema()
    if args.schema:
        page_schema = PageSchema.model_validate_json(
            args.schema.read_text(encoding="utf-8")
        )

    return RunConfig(
        mode=StreamFormat.HLS if args.hls else StreamFormat.DASH,
        download_all=args.download_all,
        subs_only=args.subs_only,
        debug=args.debug,
        output_dir=args.output_dir,
        workers=args.workers,
        max_pages=args.max_pages,
        timeout=args.timeout,
        sanitize_filenames=args.sanitize_filenames,
        ascii_filenames=args.ascii_filenames,
        page_schema=page_schema,
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.url:
        print("Necesitas pasar la URL de la página de un episodio de france.tv.")
        print("Mira https://www.france.tv/enfants/six-huit-ans/ para tener ideas")
        return 1

    try:
        config = config_from_args(args)
    except (OSError, ValidationError) as e:
        print(f"Configuración inválida: {e}")
        return 1

    setup_logging(config.debug)
    logger.debug("Modo debug activado")
    if config.subs_only:
        logger.info("Descargando solo subtítulos")

    queue = DownloadQueue(workers=config.workers, timeout=config.timeout)
    queue.start()
    pipeline = Pipeline.from_config(config, queue)

    try:
        exit_code = pipeline.run(args.url)
    except KeyboardInterrupt:
        queue.cancel()
        queue.wait()
        return 130

    queue.close()
    try:
        queue.wait()
    except KeyboardInterrupt:
        queue.cancel()
        return 130

    if queue.failed:
        logger.error(f"{len(queue.failed)} descargas fallaron")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
