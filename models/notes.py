"""Trip note suggestions from a hosted text-generation model."""

import logging
from typing import Optional, TYPE_CHECKING

import httpx

from .timestamps import format_local

if TYPE_CHECKING:
    from .mutation import Mutation
    from .vehicle import Vehicle

logger = logging.getLogger(__name__)

API_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.5-flash"

FALLBACK_NOTES = "Gagal membuat catatan. Silakan periksa koneksi atau kunci API Anda."
MISSING_TRIP = "Informasi perjalanan tidak ditemukan."


def build_prompt(
    mutation: "Mutation", vehicle: Optional["Vehicle"], timezone: str = "Asia/Jakarta"
) -> str:
    """Prompt asking for a short notes template for the trip log."""
    brand = vehicle.brand if vehicle else "-"
    plate = vehicle.plate_number if vehicle else "-"
    return (
        "Buatkan ringkasan dan catatan singkat untuk perjalanan kendaraan dengan "
        "detail berikut. Gunakan Bahasa Indonesia.\n"
        f"Kendaraan: {brand} ({plate})\n"
        f"Pengemudi: {mutation.driver}\n"
        f"Tujuan: {mutation.destination}\n"
        f"Waktu Mulai: {format_local(mutation.start_time, timezone)}\n"
        f"KM Awal: {mutation.start_km}\n"
        "Perjalanan ini akan berakhir. Buatkan template untuk kolom catatan pada "
        "log perjalanan. Sertakan placeholder untuk isu yang mungkin ditemui atau "
        "kejadian penting selama perjalanan (contoh: [Kondisi Ban], [Performa Mesin], "
        "[Catatan Lainnya]). Jaga agar tetap profesional dan ringkas."
    )


class TripNoteGenerator:
    """
    Client for the generateContent REST endpoint.

    generate() never raises: any failure is logged and the fixed fallback
    message is returned so trip completion is never blocked.
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str = DEFAULT_MODEL,
        timezone: str = "Asia/Jakarta",
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
        base_url: str = API_BASE_URL,
    ):
        self.api_key = api_key
        self.model = model
        self.timezone = timezone
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout)

    def generate(self, mutation: "Mutation", vehicle: Optional["Vehicle"]) -> str:
        """Suggested notes for a trip, or the fallback message."""
        if not self.api_key:
            logger.warning("No API key configured for trip notes")
            return FALLBACK_NOTES
        prompt = build_prompt(mutation, vehicle, self.timezone)
        try:
            response = self._client.post(
                f"{self.base_url}/models/{self.model}:generateContent",
                params={"key": self.api_key},
                json={"contents": [{"parts": [{"text": prompt}]}]},
            )
            response.raise_for_status()
            return self._extract_text(response.json())
        except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as e:
            logger.error("Error generating trip notes: %s", e)
            return FALLBACK_NOTES

    @staticmethod
    def _extract_text(data: dict) -> str:
        parts = data["candidates"][0]["content"]["parts"]
        text = "".join(part.get("text", "") for part in parts).strip()
        if not text:
            raise ValueError("empty completion")
        return text
