"""FastAPI server that exposes participant and admin endpoints."""

from __future__ import annotations

import datetime as dt
import logging
from threading import Thread

from fastapi import Depends, FastAPI, Header, HTTPException, Query
from pydantic import BaseModel, Field
import uvicorn

from marathon_app.constants.about import APP_ABOUT_TEXT, APP_LICENSE, APP_NAME, APP_VERSION
from marathon_app.constants.network_constants import ADMIN_HEADER, DEFAULT_HOST, DEFAULT_PORT
from marathon_app.constants.scoring_constants import DEFAULT_BONUS_POINTS, LEADERBOARD_DEFAULT_LIMIT
from marathon_app.core.errors import (
    AlreadySubmittedError,
    InvalidEventError,
    InvalidReadingError,
    InvalidUserError,
    MarathonError,
    PermissionDeniedError,
    SnapshotError,
    UnknownEventError,
    UnknownGroupError,
    UnknownReadingError,
    UnknownUserError,
)
from marathon_app.core.markdown_renderer import renderer
from marathon_app.core.marathon_manager import EventStatus, MarathonManager
from marathon_app.core.models import Event, QuizOption, Reading, User
from marathon_app.core.services.daily_reflection import DailyReflectionService

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: list[tuple[type[MarathonError], int]] = [
    (AlreadySubmittedError, 409),
    (UnknownReadingError, 404),
    (UnknownUserError, 404),
    (UnknownEventError, 404),
    (UnknownGroupError, 404),
    (InvalidEventError, 422),
    (InvalidReadingError, 422),
    (InvalidUserError, 422),
    (PermissionDeniedError, 403),
    (SnapshotError, 503),
]


def _to_http_exception(exc: MarathonError) -> HTTPException:
    status_code = next((code for kind, code in _STATUS_BY_ERROR if isinstance(exc, kind)), 400)
    logger.warning("Rejected request (%d): %s", status_code, exc)
    return HTTPException(status_code=status_code, detail=str(exc))


class OptionPayload(BaseModel):
    id: str
    text: str


class ReadingPayload(BaseModel):
    """Payload schema for a directly entered or imported reading."""

    id: str | None = None
    date: dt.date
    title: str
    question: str | None = None
    options: list[OptionPayload] = Field(default_factory=list)
    correct_option_id: str | None = None
    bonus_points: int = Field(default=DEFAULT_BONUS_POINTS, ge=0)

    def to_reading(self) -> Reading:
        return Reading(
            id=self.id or "",
            date=self.date,
            title=self.title,
            question=self.question,
            options=tuple(QuizOption(id=o.id, text=o.text) for o in self.options),
            correct_option_id=self.correct_option_id,
            bonus_points=self.bonus_points,
        )


class JoinPayload(BaseModel):
    name: str
    group: str


class UserUpdatePayload(BaseModel):
    name: str | None = None
    group: str | None = None
    total_score: int | None = None


class CompletionPayload(BaseModel):
    reading_id: str
    quiz_answer_id: str | None = None


class GroupPayload(BaseModel):
    name: str


class EventPayload(BaseModel):
    title: str
    description: str | None = None
    start_date: dt.date
    end_date: dt.date
    reading_ids: list[str]


def _reading_to_dict(reading: Reading, include_answer: bool = False) -> dict[str, object]:
    body: dict[str, object] = {
        "id": reading.id,
        "date": reading.date.isoformat(),
        "title": reading.title,
        "question": reading.question,
        "question_html": renderer.render_fragment(reading.question),
        "options": [{"id": o.id, "text": o.text} for o in reading.options],
        "bonus_points": reading.bonus_points,
    }
    if include_answer:
        body["correct_option_id"] = reading.correct_option_id
    return body


def _user_to_dict(user: User) -> dict[str, object]:
    return {
        "id": user.id,
        "name": user.name,
        "group": user.group,
        "role": user.role.value,
        "total_score": user.total_score,
    }


def _event_to_dict(event: Event) -> dict[str, object]:
    return {
        "id": event.id,
        "title": event.title,
        "description": event.description,
        "description_html": renderer.render_fragment(event.description),
        "start_date": event.start_date.isoformat(),
        "end_date": event.end_date.isoformat(),
        "reading_ids": sorted(event.reading_ids),
    }


def _event_status_to_dict(status: EventStatus) -> dict[str, object]:
    body = _event_to_dict(status.event)
    body.update(
        {
            "is_active": status.is_active,
            "completed": status.progress.completed,
            "total": status.progress.total,
            "percent": status.progress.percent,
        }
    )
    return body


def _get_marathon_manager_dependency(marathon_manager: MarathonManager):
    def dependency() -> MarathonManager:
        return marathon_manager

    return dependency


def create_api_app(
    marathon_manager: MarathonManager,
    reflection_service: DailyReflectionService | None = None,
) -> FastAPI:
    """Create a FastAPI application wired to the provided marathon manager."""
    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION)
    manager_dep = _get_marathon_manager_dependency(marathon_manager)
    reflections = reflection_service or DailyReflectionService()

    def admin_dep(
        caller_id: str | None = Header(default=None, alias=ADMIN_HEADER),
        manager: MarathonManager = Depends(manager_dep),
    ) -> User:
        try:
            return manager.require_admin(caller_id)
        except UnknownUserError as exc:
            raise HTTPException(status_code=403, detail=str(exc)) from exc
        except MarathonError as exc:
            raise _to_http_exception(exc) from exc

    @app.get("/")
    def get_about() -> dict[str, object]:
        return {"name": APP_NAME, "version": APP_VERSION, "license": APP_LICENSE, "about": APP_ABOUT_TEXT}

    # --- Readings ---

    @app.get("/readings")
    def list_readings(manager: MarathonManager = Depends(manager_dep)) -> list[dict[str, object]]:
        return [_reading_to_dict(r) for r in manager.get_readings()]

    @app.get("/readings/today")
    def get_todays_reading(manager: MarathonManager = Depends(manager_dep)) -> dict[str, object]:
        reading = manager.get_todays_reading()
        if reading is None:
            raise HTTPException(status_code=404, detail="No reading is scheduled for today.")
        body = _reading_to_dict(reading)
        # Requested outside the manager lock; the model call may be slow.
        body["reflection"] = reflections.reflect(reading.title)
        return body

    @app.get("/admin/readings")
    def search_readings(
        query: str = "",
        _admin: User = Depends(admin_dep),
        manager: MarathonManager = Depends(manager_dep),
    ) -> list[dict[str, object]]:
        return [_reading_to_dict(r, include_answer=True) for r in manager.search_readings(query)]

    @app.post("/admin/readings", status_code=201)
    def add_reading(
        payload: ReadingPayload,
        _admin: User = Depends(admin_dep),
        manager: MarathonManager = Depends(manager_dep),
    ) -> dict[str, object]:
        try:
            reading = manager.add_reading(payload.to_reading())
        except MarathonError as exc:
            raise _to_http_exception(exc) from exc
        return _reading_to_dict(reading, include_answer=True)

    @app.post("/admin/readings/bulk", status_code=201)
    def bulk_add_readings(
        payload: list[ReadingPayload],
        _admin: User = Depends(admin_dep),
        manager: MarathonManager = Depends(manager_dep),
    ) -> dict[str, object]:
        try:
            added = manager.bulk_add_readings(p.to_reading() for p in payload)
        except MarathonError as exc:
            raise _to_http_exception(exc) from exc
        return {"added": len(added), "reading_ids": [r.id for r in added]}

    @app.delete("/admin/readings/{reading_id}")
    def delete_reading(
        reading_id: str,
        _admin: User = Depends(admin_dep),
        manager: MarathonManager = Depends(manager_dep),
    ) -> dict[str, object]:
        try:
            removed = manager.delete_reading(reading_id)
        except MarathonError as exc:
            raise _to_http_exception(exc) from exc
        return {"deleted": removed.id}

    # --- Users ---

    @app.post("/users", status_code=201)
    def join(payload: JoinPayload, manager: MarathonManager = Depends(manager_dep)) -> dict[str, object]:
        try:
            user = manager.join(payload.name, payload.group)
        except MarathonError as exc:
            raise _to_http_exception(exc) from exc
        return _user_to_dict(user)

    @app.get("/users/lookup")
    def find_participant(name: str, manager: MarathonManager = Depends(manager_dep)) -> dict[str, object]:
        user = manager.find_participant_by_name(name)
        if user is None:
            raise HTTPException(status_code=404, detail=f"No participant named '{name}'.")
        return _user_to_dict(user)

    @app.get("/users/{user_id}")
    def get_user(user_id: str, manager: MarathonManager = Depends(manager_dep)) -> dict[str, object]:
        try:
            return _user_to_dict(manager.get_user(user_id))
        except MarathonError as exc:
            raise _to_http_exception(exc) from exc

    @app.get("/users/{user_id}/summary")
    def get_summary(user_id: str, manager: MarathonManager = Depends(manager_dep)) -> dict[str, object]:
        try:
            summary = manager.participant_summary(user_id)
        except MarathonError as exc:
            raise _to_http_exception(exc) from exc
        return {
            "user_id": summary.user_id,
            "name": summary.name,
            "group": summary.group,
            "total_score": summary.total_score,
            "rank": summary.rank,
            "completed_count": summary.completed_count,
            "completion_percent": summary.completion_percent,
            "group_rank": summary.group_rank,
            "points_behind_leader": summary.points_behind_leader,
            "todays_reading_id": summary.todays_reading_id,
            "todays_reading_completed": summary.todays_reading_completed,
        }

    @app.post("/users/{user_id}/completions", status_code=201)
    def record_completion(
        user_id: str,
        payload: CompletionPayload,
        manager: MarathonManager = Depends(manager_dep),
    ) -> dict[str, object]:
        try:
            result = manager.record_completion(user_id, payload.reading_id, payload.quiz_answer_id)
        except MarathonError as exc:
            raise _to_http_exception(exc) from exc
        submission = result.submission
        return {
            "reading_id": submission.reading_id,
            "completed_at": submission.completed_at.isoformat(),
            "quiz_answer_id": submission.quiz_answer_id,
            "is_correct": submission.is_correct,
            "score": submission.score,
            "total_score": result.total_score,
        }

    @app.get("/users/{user_id}/events")
    def get_user_events(user_id: str, manager: MarathonManager = Depends(manager_dep)) -> list[dict[str, object]]:
        try:
            statuses = manager.events_for_user(user_id)
        except MarathonError as exc:
            raise _to_http_exception(exc) from exc
        return [_event_status_to_dict(status) for status in statuses]

    @app.get("/admin/users")
    def search_users(
        query: str = "",
        _admin: User = Depends(admin_dep),
        manager: MarathonManager = Depends(manager_dep),
    ) -> list[dict[str, object]]:
        return [_user_to_dict(u) for u in manager.search_users(query)]

    @app.patch("/admin/users/{user_id}")
    def update_user(
        user_id: str,
        payload: UserUpdatePayload,
        _admin: User = Depends(admin_dep),
        manager: MarathonManager = Depends(manager_dep),
    ) -> dict[str, object]:
        try:
            user = manager.update_user(
                user_id,
                name=payload.name,
                group=payload.group,
                total_score=payload.total_score,
            )
        except MarathonError as exc:
            raise _to_http_exception(exc) from exc
        return _user_to_dict(user)

    @app.delete("/admin/users/{user_id}")
    def delete_user(
        user_id: str,
        _admin: User = Depends(admin_dep),
        manager: MarathonManager = Depends(manager_dep),
    ) -> dict[str, object]:
        try:
            removed = manager.delete_user(user_id)
        except MarathonError as exc:
            raise _to_http_exception(exc) from exc
        return {"deleted": user_id, "submissions_removed": removed}

    @app.get("/admin/score-drift")
    def get_score_drift(
        _admin: User = Depends(admin_dep),
        manager: MarathonManager = Depends(manager_dep),
    ) -> list[dict[str, object]]:
        return [
            {"user_id": d.user_id, "recorded_total": d.recorded_total, "ledger_total": d.ledger_total}
            for d in manager.find_score_drift()
        ]

    @app.post("/admin/score-drift/repair")
    def repair_score_drift(
        _admin: User = Depends(admin_dep),
        manager: MarathonManager = Depends(manager_dep),
    ) -> dict[str, object]:
        try:
            repaired = manager.recompute_totals()
        except MarathonError as exc:
            raise _to_http_exception(exc) from exc
        return {"repaired": [d.user_id for d in repaired]}

    # --- Leaderboards ---

    @app.get("/leaderboard/individuals")
    def get_individual_leaderboard(
        limit: int = Query(default=LEADERBOARD_DEFAULT_LIMIT, ge=1),
        manager: MarathonManager = Depends(manager_dep),
    ) -> list[dict[str, object]]:
        return [
            {
                "rank": row.rank,
                "user_id": row.user_id,
                "name": row.name,
                "group": row.group,
                "total_score": row.total_score,
            }
            for row in manager.rank_individuals(limit=limit)
        ]

    @app.get("/leaderboard/groups")
    def get_group_leaderboard(
        limit: int = Query(default=LEADERBOARD_DEFAULT_LIMIT, ge=1),
        manager: MarathonManager = Depends(manager_dep),
    ) -> list[dict[str, object]]:
        return [
            {
                "rank": row.rank,
                "group": row.group_name,
                "total_score": row.total_score,
                "member_count": row.member_count,
            }
            for row in manager.rank_groups(limit=limit)
        ]

    @app.get("/leaderboard/groups/{group_name}")
    def get_group_members_leaderboard(
        group_name: str,
        limit: int = Query(default=LEADERBOARD_DEFAULT_LIMIT, ge=1),
        manager: MarathonManager = Depends(manager_dep),
    ) -> list[dict[str, object]]:
        return [
            {"rank": row.rank, "user_id": row.user_id, "name": row.name, "total_score": row.total_score}
            for row in manager.rank_within_group(group_name, limit=limit)
        ]

    # --- Groups ---

    @app.get("/groups")
    def list_groups(manager: MarathonManager = Depends(manager_dep)) -> list[dict[str, object]]:
        return [{"name": g.name, "member_count": g.member_count} for g in manager.list_groups()]

    @app.post("/admin/groups", status_code=201)
    def add_group(
        payload: GroupPayload,
        _admin: User = Depends(admin_dep),
        manager: MarathonManager = Depends(manager_dep),
    ) -> dict[str, object]:
        try:
            return {"name": manager.add_group(payload.name)}
        except MarathonError as exc:
            raise _to_http_exception(exc) from exc

    @app.put("/admin/groups/{group_name}")
    def rename_group(
        group_name: str,
        payload: GroupPayload,
        _admin: User = Depends(admin_dep),
        manager: MarathonManager = Depends(manager_dep),
    ) -> dict[str, object]:
        try:
            moved = manager.rename_group(group_name, payload.name)
        except MarathonError as exc:
            raise _to_http_exception(exc) from exc
        return {"name": payload.name.strip(), "members_moved": moved}

    @app.delete("/admin/groups/{group_name}")
    def delete_group(
        group_name: str,
        _admin: User = Depends(admin_dep),
        manager: MarathonManager = Depends(manager_dep),
    ) -> dict[str, object]:
        try:
            manager.delete_group(group_name)
        except MarathonError as exc:
            raise _to_http_exception(exc) from exc
        return {"deleted": group_name}

    # --- Events ---

    @app.get("/events")
    def list_events(manager: MarathonManager = Depends(manager_dep)) -> list[dict[str, object]]:
        return [_event_to_dict(e) for e in manager.get_events()]

    @app.get("/events/{event_id}/progress/{user_id}")
    def get_event_progress(
        event_id: str,
        user_id: str,
        manager: MarathonManager = Depends(manager_dep),
    ) -> dict[str, object]:
        try:
            progress = manager.get_event_progress(event_id, user_id)
        except MarathonError as exc:
            raise _to_http_exception(exc) from exc
        return {"completed": progress.completed, "total": progress.total, "percent": progress.percent}

    @app.post("/admin/events", status_code=201)
    def create_event(
        payload: EventPayload,
        _admin: User = Depends(admin_dep),
        manager: MarathonManager = Depends(manager_dep),
    ) -> dict[str, object]:
        try:
            event = manager.create_event(
                title=payload.title,
                start_date=payload.start_date,
                end_date=payload.end_date,
                reading_ids=payload.reading_ids,
                description=payload.description,
            )
        except MarathonError as exc:
            raise _to_http_exception(exc) from exc
        return _event_to_dict(event)

    @app.delete("/admin/events/{event_id}")
    def delete_event(
        event_id: str,
        _admin: User = Depends(admin_dep),
        manager: MarathonManager = Depends(manager_dep),
    ) -> dict[str, object]:
        try:
            removed = manager.delete_event(event_id)
        except MarathonError as exc:
            raise _to_http_exception(exc) from exc
        return {"deleted": removed.id}

    return app


def start_api_server(
    marathon_manager: MarathonManager,
    reflection_service: DailyReflectionService | None = None,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> Thread:
    """Start the FastAPI server in a background daemon thread."""
    app = create_api_app(marathon_manager, reflection_service)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)

    def run_server() -> None:
        server.run()

    thread = Thread(target=run_server, name="MarathonApiServer", daemon=True)
    thread.start()
    return thread
