"""Load phrase sets (learn manifests) from files."""
import csv
import json
import logging
from pathlib import Path

import yaml

from phrase_tutor.errors import ManifestError
from phrase_tutor.models import DIFFICULTIES, AudioAvailability, Phrase

logger = logging.getLogger(__name__)

CONTENT_DIR = Path(__file__).parent / "content"
SAMPLE_PHRASES_PATH = CONTENT_DIR / "sample_phrases.json"

UNSET_DIFFICULTY = "unset"

# Older exports name the columns after the language pair.
FIELD_ALIASES = {
    "source_text": ("source_text", "en_text", "source"),
    "target_text": ("target_text", "pl_text", "target"),
}


def _field(record: dict, name: str):
    for key in FIELD_ALIASES.get(name, (name,)):
        if record.get(key) not in (None, ""):
            return record[key]
    return None


def _audio(record: dict) -> AudioAvailability:
    audio = record.get("audio") or {}
    if not isinstance(audio, dict):
        raise ManifestError(f"Audio flags must be a mapping, got {audio!r}")
    return AudioAvailability(
        has_source_audio=bool(audio.get("has_source_audio", audio.get("has_en_audio", False))),
        has_target_audio=bool(audio.get("has_target_audio", audio.get("has_pl_audio", False))),
    )


def phrase_from_record(record: dict, position: int) -> Phrase:
    """Build a Phrase from one manifest entry. Position defaults to file order."""
    if not isinstance(record, dict):
        raise ManifestError(f"Phrase entry {position} is not a mapping")
    source = _field(record, "source_text")
    target = _field(record, "target_text")
    if source is None or target is None:
        raise ManifestError(f"Phrase entry {position} needs both source_text and target_text")
    difficulty = record.get("difficulty") or None
    if difficulty is not None and difficulty not in DIFFICULTIES:
        raise ManifestError(f"Phrase entry {position} has unknown difficulty {difficulty!r}")
    pos = record.get("position")
    try:
        pos = int(pos) if pos not in (None, "") else position
    except (TypeError, ValueError) as e:
        raise ManifestError(f"Phrase entry {position} has a non-numeric position {pos!r}") from e
    return Phrase(
        id=str(record.get("id") or f"p{position}"),
        source_text=str(source),
        target_text=str(target),
        position=pos,
        difficulty=difficulty,
        audio=_audio(record),
    )


def _records_from_document(data) -> list:
    if isinstance(data, dict):
        data = data.get("phrases")
    if not isinstance(data, list):
        raise ManifestError("Expected a list of phrases or a mapping with a 'phrases' list")
    return data


def _records_from_text(text: str) -> list[dict]:
    records = []
    for line_no, line in enumerate(text.splitlines(), 1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "\t" in line:
            source, _, target = line.partition("\t")
        elif " | " in line:
            source, _, target = line.partition(" | ")
        else:
            raise ManifestError(f"Line {line_no}: expected 'source | target' or a tab-separated pair")
        records.append({"source_text": source.strip(), "target_text": target.strip()})
    return records


def read_phrase_records(file_path) -> list:
    path = Path(file_path)
    if not path.exists():
        raise ManifestError(f"File not found: {file_path}")
    suffix = path.suffix.lower()
    text = path.read_text(encoding="utf-8")

    try:
        if suffix == ".json":
            return _records_from_document(json.loads(text))
        elif suffix in (".yaml", ".yml"):
            return _records_from_document(yaml.safe_load(text))
        elif suffix == ".csv":
            return list(csv.DictReader(text.splitlines()))
        elif suffix in (".txt", ".tsv", ".md"):
            return _records_from_text(text)
    except (json.JSONDecodeError, yaml.YAMLError, csv.Error) as e:
        raise ManifestError(f"Could not parse {path.name}: {e}") from e
    raise ManifestError(f"Unsupported phrase file type: {suffix or path.name}")


def filter_by_difficulty(phrases, difficulty: str | None) -> list[Phrase]:
    """Keep phrases of one difficulty; 'unset' keeps phrases without one."""
    if not difficulty:
        return list(phrases)
    if difficulty == UNSET_DIFFICULTY:
        return [p for p in phrases if p.difficulty is None]
    if difficulty not in DIFFICULTIES:
        raise ManifestError(
            f"Invalid difficulty filter {difficulty!r}. Must be 'easy', 'medium', 'hard', or 'unset'"
        )
    return [p for p in phrases if p.difficulty == difficulty]


def load_phrases(file_path, difficulty: str | None = None) -> list[Phrase]:
    records = read_phrase_records(file_path)
    phrases = [phrase_from_record(record, i) for i, record in enumerate(records, 1)]
    ids = [p.id for p in phrases]
    if len(set(ids)) != len(ids):
        raise ManifestError(f"Duplicate phrase ids in {Path(file_path).name}")
    phrases.sort(key=lambda p: p.position)
    selected = filter_by_difficulty(phrases, difficulty)
    logger.info("Loaded %d phrases from %s (%d after filter)", len(phrases), file_path, len(selected))
    return selected


def build_manifest(phrases) -> dict:
    return {
        "phrase_count": len(phrases),
        "phrases": [
            {
                "id": p.id,
                "position": p.position,
                "source_text": p.source_text,
                "target_text": p.target_text,
                "difficulty": p.difficulty,
                "audio": {
                    "has_source_audio": p.audio.has_source_audio,
                    "has_target_audio": p.audio.has_target_audio,
                },
            }
            for p in phrases
        ],
    }
