"""FastAPI service exposing the learn manifest and answer checking.

The check-answer endpoint runs the same comparison as local checking, so a
client gets an identical result from either path.
"""
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel

from phrase_tutor import __version__
from phrase_tutor.compare import compare_answers
from phrase_tutor.errors import ManifestError
from phrase_tutor.manifest import build_manifest, filter_by_difficulty
from phrase_tutor.models import Direction, Phrase


class AudioOut(BaseModel):
    has_source_audio: bool
    has_target_audio: bool


class PhraseOut(BaseModel):
    id: str
    position: int
    source_text: str
    target_text: str
    difficulty: Optional[str] = None
    audio: AudioOut


class ManifestOut(BaseModel):
    phrase_count: int
    phrases: List[PhraseOut]


class CheckAnswerRequest(BaseModel):
    phrase_id: str
    user_answer: str
    direction: Direction
    use_contains_mode: bool = False


class CheckAnswerResponse(BaseModel):
    is_correct: bool
    normalized_user: str
    normalized_correct: str


def create_app(phrases: List[Phrase]) -> FastAPI:
    app = FastAPI(
        title="Phrase Tutor API",
        description="Learn manifest and answer checking for bilingual phrase sets.",
        version=__version__,
    )
    phrases = list(phrases)
    phrases_by_id = {p.id: p for p in phrases}

    @app.get("/learn/manifest", response_model=ManifestOut)
    def get_manifest(difficulty: Optional[str] = Query(None)) -> dict:
        try:
            selected = filter_by_difficulty(phrases, difficulty)
        except ManifestError as e:
            raise HTTPException(status_code=422, detail=str(e))
        return build_manifest(selected)

    @app.post("/learn/check-answer", response_model=CheckAnswerResponse)
    def check_answer(payload: CheckAnswerRequest) -> CheckAnswerResponse:
        phrase = phrases_by_id.get(payload.phrase_id)
        if phrase is None:
            raise HTTPException(status_code=404, detail="Phrase not found")
        result = compare_answers(
            payload.user_answer, phrase.answer_for(payload.direction), payload.use_contains_mode,
        )
        return CheckAnswerResponse(**result.to_dict())

    return app
