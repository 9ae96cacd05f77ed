import logging
import re
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional, Union

from francetvpy.errors import DownloadError

logger = logging.getLogger(__name__)


class PostProcessor:
    """Une los segmentos descargados y arma el archivo final con FFmpeg."""

    def __init__(self, working_dir: Union[str, Path], output_dir: Union[str, Path]):
        working_dir = Path(working_dir) if isinstance(working_dir, str) else working_dir
        self.working_dir = working_dir
        self.output_dir = Path(output_dir)
        self.video_dir = working_dir / "video"
        self.audio_dir = working_dir / "audio"

    def text_dir(self, lang: str) -> Path:
        return self.working_dir / f"text_{lang}"

    def _get_sorted_segments(self, directory: Path) -> List[Path]:
        """
        Encuentra y ordena los segmentos numéricamente.
        El init (si existe) va primero.
        """
        files = []
        init_file = None

        if not directory.exists():
            return []

        for f in directory.iterdir():
            if "init" in f.name:
                init_file = f
                continue
            files.append(f)

        def extract_number(p: Path):
            match = re.search(r"_(\d+)", p.name)
            return int(match.group(1)) if match else 0

        files.sort(key=extract_number)

        if init_file:
            files.insert(0, init_file)

        return files

    def _concatenate_binary(self, files: List[Path], output_path: Path):
        """Une archivos a nivel de bytes."""
        if not files:
            return

        logger.info(f"Uniendo {len(files)} segmentos en {output_path.name}...")
        with open(output_path, "wb") as outfile:
            for f in files:
                with open(f, "rb") as readfile:
                    shutil.copyfileobj(readfile, outfile)

    def _join_track(self, directory: Path, name: str) -> Optional[Path]:
        files = self._get_sorted_segments(directory)
        if not files:
            return None
        track = self.working_dir / name
        self._concatenate_binary(files, track)
        return track

    def _run_ffmpeg(self, cmd: List[str]):
        try:
            subprocess.run(
                cmd, check=True, stdout=subprocess.DEVNULL, stderr=subprocess.PIPE
            )
        except FileNotFoundError:
            raise DownloadError(
                "ffmpeg no encontrado. Asegúrate de tenerlo instalado y en el PATH."
            ) from None
        except subprocess.CalledProcessError as e:
            stderr = e.stderr.decode("utf-8", errors="ignore") if e.stderr else ""
            raise DownloadError(f"Error en FFmpeg (exit={e.returncode}): {stderr}") from e

    def process(
        self, output_filename: str, text_langs: List[str], cleanup: bool = True
    ) -> Path:
        """
        Orquesta la unión de pistas y el muxing final (video + audio + subtítulos).
        """
        final_output = self.output_dir / output_filename

        video_track = self._join_track(self.video_dir, "temp_video.mp4")
        if not video_track:
            raise DownloadError("No se encontraron segmentos de video.")
        audio_track = self._join_track(self.audio_dir, "temp_audio.mp4")

        text_tracks = []
        for lang in text_langs:
            track = self._join_track(self.text_dir(lang), f"temp_text_{lang}")
            if track:
                text_tracks.append((lang, track))

        logger.info("Empaquetando contenedor final con FFmpeg...")
        cmd = ["ffmpeg", "-y", "-loglevel", "error", "-i", str(video_track)]
        if audio_track:
            cmd.extend(["-i", str(audio_track)])
        for _, track in text_tracks:
            cmd.extend(["-i", str(track)])

        inputs = 1 + (1 if audio_track else 0) + len(text_tracks)
        for i in range(inputs):
            cmd.extend(["-map", str(i)])
        for i, (lang, _) in enumerate(text_tracks):
            cmd.extend([f"-metadata:s:s:{i}", f"language={lang}"])
        cmd.extend(["-c", "copy", "-c:s", "webvtt", str(final_output)])

        self.output_dir.mkdir(parents=True, exist_ok=True)
        self._run_ffmpeg(cmd)
        logger.info(f"¡Éxito! Video final creado en: {final_output}")

        if cleanup:
            logger.info("Limpiando temporales...")
            self._cleanup_garbage()
        return final_output

    def extract_subtitles(
        self, base_filename: str, text_langs: List[str], cleanup: bool = True
    ) -> List[Path]:
        """Convierte cada pista de texto descargada en `<nombre>.<lang>.vtt`."""
        outputs = []
        self.output_dir.mkdir(parents=True, exist_ok=True)
        for lang in text_langs:
            track = self._join_track(self.text_dir(lang), f"temp_text_{lang}")
            if not track:
                logger.warning(f"Sin segmentos para los subtítulos '{lang}'")
                continue
            output = self.output_dir / f"{base_filename}.{lang}.vtt"
            self._run_ffmpeg(
                ["ffmpeg", "-y", "-loglevel", "error", "-i", str(track), "-c:s", "webvtt", str(output)]
            )
            outputs.append(output)

        if cleanup:
            self._cleanup_garbage()
        return outputs

    def _cleanup_garbage(self):
        if self.working_dir.exists():
            shutil.rmtree(self.working_dir)

    def _get_actual_duration(self, file_path: Path) -> float:
        """Obtiene la duración precisa usando ffprobe."""
        cmd = [
            "ffprobe",
            "-v",
            "error",
            "-show_entries",
            "format=duration",
            "-of",
            "default=noprint_wrappers=1:nokey=1",
            str(file_path),
        ]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, check=True)
            return float(result.stdout.strip())
        except (subprocess.CalledProcessError, ValueError, FileNotFoundError):
            logger.error("No se pudo obtener la duración del archivo.")
            return 0.0

    def verify_integrity(
        self, file_path: Path, expected_duration: float, tolerance: float = 5.0
    ) -> bool:
        """
        Compara la duración del archivo con la esperada.
        :param tolerance: Segundos de diferencia aceptables.
        """
        if expected_duration <= 0:
            logger.warning("Duración esperada inválida, omitiendo verificación.")
            return True

        actual = self._get_actual_duration(file_path)
        diff = abs(actual - expected_duration)

        logger.info(
            f"Integridad: Esperado={expected_duration:.2f}s | Real={actual:.2f}s | Diff={diff:.2f}s"
        )

        if diff > tolerance:
            logger.error(
                f"VERIFICACIÓN FALLIDA: El video está incompleto o corrupto (Faltan ~{diff:.2f}s)"
            )
            return False

        logger.info("VERIFICACIÓN EXITOSA: El video está completo.")
        return True
