"""JSON export of transcriptions."""

import json
from pathlib import Path

from ..core import InvalidInput, Transcription


class JSONExporter:
    """Write and read transcriptions as plain JSON.

    The document carries key, tempo, timeSignature, difficulty, duration
    and a notes list with id, note, octave, time and duration per entry.
    """

    def __init__(self, indent: int = 2):
        self.indent = indent

    def to_json(self, transcription: Transcription) -> str:
        return json.dumps(transcription.to_dict(), indent=self.indent)

    def export(self, transcription: Transcription, output_path: str) -> None:
        """
        Export a transcription to a JSON file.

        Args:
            transcription: Finished transcription
            output_path: Path to output JSON file
        """
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_json(transcription) + "\n", encoding="utf-8")

    def load(self, input_path: str) -> Transcription:
        """
        Read a transcription written by export().

        Raises:
            FileNotFoundError: If the file doesn't exist
            InvalidInput: If the file is not a valid transcription
        """
        text = Path(input_path).read_text(encoding="utf-8")
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise InvalidInput(f"{input_path} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise InvalidInput(f"{input_path} does not hold a transcription object")
        return Transcription.from_dict(data)
