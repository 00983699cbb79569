"""
DaveMode Database Service

Provides dual SQLite + PostgreSQL support with a unified interface.
Uses the Protocol pattern to define the database contract.

All JSON payloads are validated when they cross this boundary: requirements
and project context are rebuilt as pydantic models on read.
"""

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Type, TypeVar, Union

import pydantic

from davemode.errors import ClarificationRequestNotFoundError, EntityNotFoundError, ValidationError
from davemode.logging import get_logger
from davemode.models.domain import (
    AgentPerformanceRecord,
    ClarificationHistoryEntry,
    ClarificationRequest,
    ClarificationResponse,
    Interaction,
    LearnedPattern,
    ProjectSnapshot,
)
from davemode.models.payloads import PayloadModel, ProjectContext, Requirements, SourceFile

logger = get_logger(__name__)

# Try to import psycopg for PostgreSQL support
try:
    import psycopg
    from psycopg.rows import dict_row
    from psycopg_pool import ConnectionPool
except ImportError:
    psycopg = None  # type: ignore
    dict_row = None  # type: ignore
    ConnectionPool = None  # type: ignore


M = TypeVar("M", bound=PayloadModel)

PatternMutator = Callable[[LearnedPattern], LearnedPattern]


class DatabaseProtocol(Protocol):
    """Protocol defining the database interface."""

    def init_schema(self) -> None: ...

    # Interactions
    def store_interaction(self, interaction: Interaction) -> Interaction: ...
    def list_interactions(
        self,
        *,
        project_type: Optional[str] = None,
        kind: Optional[str] = None,
        limit: int = 10,
    ) -> List[Interaction]: ...

    # Learned patterns
    def get_pattern(self, kind: str, project_type: str) -> Optional[LearnedPattern]: ...
    def list_patterns(self, kind: Optional[str] = None) -> List[LearnedPattern]: ...
    def update_pattern(self, kind: str, project_type: str, mutate: PatternMutator) -> LearnedPattern: ...

    # Agent performance ledger
    def record_agent_outcome(
        self, agent_name: str, task_type: str, project_type: str, success: bool
    ) -> AgentPerformanceRecord: ...
    def list_agent_performance(
        self,
        *,
        agent_name: Optional[str] = None,
        task_type: Optional[str] = None,
        project_type: Optional[str] = None,
    ) -> List[AgentPerformanceRecord]: ...

    # Projects
    def store_project(self, project: ProjectSnapshot) -> ProjectSnapshot: ...
    def get_project(self, project_id: str) -> ProjectSnapshot: ...
    def list_projects(self, *, limit: int = 50) -> List[ProjectSnapshot]: ...

    # Clarifications
    def store_clarification_request(self, request: ClarificationRequest) -> ClarificationRequest: ...
    def get_clarification_request(self, interaction_id: str) -> ClarificationRequest: ...
    def store_clarification_response(self, response: ClarificationResponse) -> ClarificationResponse: ...
    def get_clarification_response(self, interaction_id: str) -> Optional[ClarificationResponse]: ...
    def list_clarification_history(self, project_type: str, *, limit: int = 10) -> List[ClarificationHistoryEntry]: ...


def _dump_json(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, PayloadModel):
        value = value.to_data()
    elif isinstance(value, list):
        value = [v.to_data() if isinstance(v, PayloadModel) else v for v in value]
    return json.dumps(value)


class _RowConverters:
    """Row to model conversion shared by the SQLite and PostgreSQL backends."""

    @staticmethod
    def _parse_json(value: Any) -> Optional[Union[dict, list]]:
        if value is None:
            return None
        if isinstance(value, (dict, list)):
            return value
        try:
            return json.loads(value)
        except (TypeError, ValueError):
            return None

    @staticmethod
    def _coerce_ts(value: Any) -> str:
        if isinstance(value, datetime):
            if value.tzinfo is None:
                value = value.replace(tzinfo=timezone.utc)
            return value.isoformat()
        if isinstance(value, str):
            text = value.strip()
            if not text:
                return ""
            try:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
                if parsed.tzinfo is None:
                    parsed = parsed.replace(tzinfo=timezone.utc)
                return parsed.isoformat()
            except ValueError:
                return text
        return str(value) if value else ""

    @classmethod
    def _load_model(cls, model: Type[M], value: Any) -> Optional[M]:
        data = cls._parse_json(value)
        if data is None:
            return None
        try:
            return model.model_validate(data)
        except pydantic.ValidationError as exc:
            raise ValidationError(
                f"Stored {model.__name__} payload is malformed",
                metadata={"errors": exc.errors(include_url=False)},
            ) from exc

    def _load_files(self, value: Any) -> Optional[List[SourceFile]]:
        data = self._parse_json(value)
        if data is None:
            return None
        return [self._load_model(SourceFile, item) for item in data]

    def _row_to_interaction(self, row) -> Interaction:
        success = row["success"]
        return Interaction(
            id=row["interaction_id"],
            kind=row["type"],
            project_type=row["project_type"] or "",
            success=bool(success) if success is not None else False,
            strategy=self._parse_json(row["strategy"]) or {},
            result=self._parse_json(row["result"]) or {},
            requirements=self._parse_json(row["requirements"]),
            project_context=self._parse_json(row["project_context"]),
            timestamp=self._coerce_ts(row["timestamp"]),
        )

    def _row_to_pattern(self, row) -> LearnedPattern:
        return LearnedPattern.from_data(
            row["pattern_type"],
            row["project_type"],
            self._parse_json(row["pattern_data"]) or {},
            updated_at=self._coerce_ts(row["updated_at"]),
        )

    def _row_to_agent_performance(self, row) -> AgentPerformanceRecord:
        return AgentPerformanceRecord(
            agent_name=row["agent_name"],
            task_type=row["task_type"],
            project_type=row["project_type"],
            uses=int(row["uses"] or 0),
            successes=int(row["successes"] or 0),
            success_rate=float(row["success_rate"] or 0.0),
            updated_at=self._coerce_ts(row["updated_at"]),
        )

    def _row_to_project(self, row) -> ProjectSnapshot:
        return ProjectSnapshot(
            id=row["project_id"],
            name=row["name"],
            type=row["type"],
            technologies=self._parse_json(row["technologies"]) or [],
            features=self._parse_json(row["features"]) or [],
            files=self._parse_json(row["files"]) or [],
            validation=self._parse_json(row["validation"]),
            timestamp=self._coerce_ts(row["timestamp"]),
        )

    def _row_to_clarification_request(self, row) -> ClarificationRequest:
        return ClarificationRequest(
            id=row["interaction_id"],
            kind=row["type"],
            questions=self._parse_json(row["questions"]) or [],
            requirements=self._load_model(Requirements, row["requirements"]),
            context=self._parse_json(row["context"]),
            files=self._load_files(row["files"]),
            project_context=self._load_model(ProjectContext, row["project_context"]),
            ambiguities=self._parse_json(row["ambiguities"]) or [],
            contextual_matches=self._parse_json(row["contextual_matches"]) or [],
            original_interaction_id=row["original_interaction_id"],
            is_follow_up=bool(row["is_follow_up"]),
            timestamp=self._coerce_ts(row["timestamp"]),
        )

    def _row_to_clarification_response(self, row) -> ClarificationResponse:
        return ClarificationResponse(
            interaction_id=row["interaction_id"],
            responses=self._parse_json(row["responses"]) or [],
            updated_requirements=self._load_model(Requirements, row["updated_requirements"]),
            updated_project_context=self._load_model(ProjectContext, row["updated_project_context"]),
            timestamp=self._coerce_ts(row["timestamp"]),
        )

    def _row_to_history_entry(self, row) -> ClarificationHistoryEntry:
        return ClarificationHistoryEntry(
            interaction_id=row["interaction_id"],
            questions=self._parse_json(row["questions"]) or [],
            ambiguities=self._parse_json(row["ambiguities"]) or [],
            contextual_matches=self._parse_json(row["contextual_matches"]) or [],
            responses=self._parse_json(row["responses"]) or [],
            updated_requirements=self._load_model(Requirements, row["updated_requirements"]),
            timestamp=self._coerce_ts(row["response_timestamp"]),
        )

    @staticmethod
    def _interaction_params(interaction: Interaction) -> tuple:
        return (
            interaction.id,
            interaction.kind,
            interaction.project_type,
            _dump_json(interaction.project_context),
            _dump_json(interaction.requirements),
            _dump_json(interaction.strategy),
            _dump_json(interaction.result),
            interaction.success,
            interaction.timestamp,
        )

    @staticmethod
    def _project_params(project: ProjectSnapshot) -> tuple:
        return (
            project.id,
            project.name,
            project.type,
            _dump_json(project.technologies),
            _dump_json(project.features),
            _dump_json(project.files),
            _dump_json(project.validation),
            project.timestamp,
        )

    @staticmethod
    def _clarification_request_params(request: ClarificationRequest) -> tuple:
        return (
            request.id,
            request.kind,
            request.original_interaction_id,
            _dump_json(request.requirements),
            _dump_json(request.context),
            _dump_json(request.files),
            _dump_json(request.project_context),
            _dump_json(request.questions),
            _dump_json(request.ambiguities),
            _dump_json(request.contextual_matches),
            request.is_follow_up,
            request.timestamp,
        )

    @staticmethod
    def _clarification_response_params(response: ClarificationResponse) -> tuple:
        return (
            response.interaction_id,
            _dump_json(response.responses),
            _dump_json(response.updated_requirements),
            _dump_json(response.updated_project_context),
            response.timestamp,
        )


class SQLiteDatabase(_RowConverters):
    """
    SQLite-backed persistence for DaveMode state.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _transaction(self, *, immediate: bool = False):
        """Context manager for database transactions."""
        conn = self._connect()
        try:
            if immediate:
                conn.execute("BEGIN IMMEDIATE")
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _fetchone(self, query: str, params: Iterable[Any] = ()) -> Optional[sqlite3.Row]:
        with self._connect() as conn:
            cur = conn.execute(query, tuple(params))
            return cur.fetchone()

    def _fetchall(self, query: str, params: Iterable[Any] = ()) -> List[sqlite3.Row]:
        with self._connect() as conn:
            cur = conn.execute(query, tuple(params))
            return cur.fetchall()

    def init_schema(self) -> None:
        """Initialize database schema."""
        from davemode.db.schema import SCHEMA_SQLITE

        with self._transaction() as conn:
            conn.executescript(SCHEMA_SQLITE)
            conn.commit()

    # Interactions

    def store_interaction(self, interaction: Interaction) -> Interaction:
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO interactions (
                    interaction_id, type, project_type, project_context,
                    requirements, strategy, result, success, timestamp
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(interaction_id) DO UPDATE SET
                    result=excluded.result,
                    success=excluded.success
                """,
                self._interaction_params(interaction),
            )
        return interaction

    def list_interactions(
        self,
        *,
        project_type: Optional[str] = None,
        kind: Optional[str] = None,
        limit: int = 10,
    ) -> List[Interaction]:
        clauses: List[str] = []
        params: List[Any] = []
        if project_type is not None:
            clauses.append("project_type = ?")
            params.append(project_type)
        if kind is not None:
            clauses.append("type = ?")
            params.append(kind)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = self._fetchall(
            f"SELECT * FROM interactions {where} ORDER BY timestamp DESC, id DESC LIMIT ?",
            (*params, limit),
        )
        return [self._row_to_interaction(row) for row in rows]

    # Learned patterns

    def get_pattern(self, kind: str, project_type: str) -> Optional[LearnedPattern]:
        row = self._fetchone(
            "SELECT * FROM patterns WHERE pattern_type = ? AND project_type = ?",
            (kind, project_type),
        )
        return self._row_to_pattern(row) if row else None

    def list_patterns(self, kind: Optional[str] = None) -> List[LearnedPattern]:
        if kind is None:
            rows = self._fetchall("SELECT * FROM patterns ORDER BY pattern_type, id")
        else:
            rows = self._fetchall("SELECT * FROM patterns WHERE pattern_type = ? ORDER BY id", (kind,))
        return [self._row_to_pattern(row) for row in rows]

    def update_pattern(self, kind: str, project_type: str, mutate: PatternMutator) -> LearnedPattern:
        """
        Read-modify-write one pattern row under a write lock.

        ``mutate`` receives the stored pattern, or a fresh empty one when the
        row does not exist yet, and returns the pattern to persist.
        """
        with self._transaction(immediate=True) as conn:
            row = conn.execute(
                "SELECT * FROM patterns WHERE pattern_type = ? AND project_type = ?",
                (kind, project_type),
            ).fetchone()
            current = self._row_to_pattern(row) if row else LearnedPattern(kind=kind, project_type=project_type)
            updated = mutate(current)
            conn.execute(
                """
                INSERT INTO patterns (pattern_type, project_type, pattern_data, success_rate, uses, updated_at)
                VALUES (?, ?, ?, ?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(pattern_type, project_type) DO UPDATE SET
                    pattern_data=excluded.pattern_data,
                    success_rate=excluded.success_rate,
                    uses=excluded.uses,
                    updated_at=CURRENT_TIMESTAMP
                """,
                (kind, project_type, json.dumps(updated.to_data()), updated.success_rate, updated.uses),
            )
        stored = self.get_pattern(kind, project_type)
        if stored is None:
            raise EntityNotFoundError(f"Pattern {kind}/{project_type} not found after upsert")
        return stored

    # Agent performance ledger

    def record_agent_outcome(
        self, agent_name: str, task_type: str, project_type: str, success: bool
    ) -> AgentPerformanceRecord:
        """Atomically add one use (and maybe one success) to a ledger row."""
        hit = 1 if success else 0
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO agent_performance (agent_name, task_type, project_type, uses, successes, success_rate)
                VALUES (?, ?, ?, 1, ?, ?)
                ON CONFLICT(agent_name, task_type, project_type) DO UPDATE SET
                    uses=agent_performance.uses + 1,
                    successes=agent_performance.successes + excluded.successes,
                    success_rate=CAST(agent_performance.successes + excluded.successes AS REAL)
                        / (agent_performance.uses + 1),
                    updated_at=CURRENT_TIMESTAMP
                """,
                (agent_name, task_type, project_type, hit, float(hit)),
            )
        row = self._fetchone(
            "SELECT * FROM agent_performance WHERE agent_name = ? AND task_type = ? AND project_type = ?",
            (agent_name, task_type, project_type),
        )
        if row is None:
            raise EntityNotFoundError(f"Agent performance row for {agent_name} not found after upsert")
        return self._row_to_agent_performance(row)

    def list_agent_performance(
        self,
        *,
        agent_name: Optional[str] = None,
        task_type: Optional[str] = None,
        project_type: Optional[str] = None,
    ) -> List[AgentPerformanceRecord]:
        clauses: List[str] = []
        params: List[Any] = []
        for column, value in (("agent_name", agent_name), ("task_type", task_type), ("project_type", project_type)):
            if value is not None:
                clauses.append(f"{column} = ?")
                params.append(value)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = self._fetchall(
            f"SELECT * FROM agent_performance {where} ORDER BY agent_name, task_type, project_type",
            params,
        )
        return [self._row_to_agent_performance(row) for row in rows]

    # Projects

    def store_project(self, project: ProjectSnapshot) -> ProjectSnapshot:
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO projects (project_id, name, type, technologies, features, files, validation, timestamp)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(project_id) DO UPDATE SET
                    name=excluded.name,
                    type=excluded.type,
                    technologies=excluded.technologies,
                    features=excluded.features,
                    files=excluded.files,
                    validation=excluded.validation,
                    timestamp=excluded.timestamp
                """,
                self._project_params(project),
            )
        return project

    def get_project(self, project_id: str) -> ProjectSnapshot:
        row = self._fetchone("SELECT * FROM projects WHERE project_id = ?", (project_id,))
        if row is None:
            raise EntityNotFoundError(f"Project {project_id} not found", metadata={"project_id": project_id})
        return self._row_to_project(row)

    def list_projects(self, *, limit: int = 50) -> List[ProjectSnapshot]:
        rows = self._fetchall("SELECT * FROM projects ORDER BY timestamp DESC, id DESC LIMIT ?", (limit,))
        return [self._row_to_project(row) for row in rows]

    # Clarifications

    def store_clarification_request(self, request: ClarificationRequest) -> ClarificationRequest:
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO clarification_requests (
                    interaction_id, type, original_interaction_id, requirements, context,
                    files, project_context, questions, ambiguities, contextual_matches,
                    is_follow_up, timestamp
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(interaction_id) DO UPDATE SET
                    type=excluded.type,
                    original_interaction_id=excluded.original_interaction_id,
                    requirements=excluded.requirements,
                    context=excluded.context,
                    files=excluded.files,
                    project_context=excluded.project_context,
                    questions=excluded.questions,
                    ambiguities=excluded.ambiguities,
                    contextual_matches=excluded.contextual_matches,
                    is_follow_up=excluded.is_follow_up,
                    timestamp=excluded.timestamp
                """,
                self._clarification_request_params(request),
            )
        return request

    def get_clarification_request(self, interaction_id: str) -> ClarificationRequest:
        row = self._fetchone("SELECT * FROM clarification_requests WHERE interaction_id = ?", (interaction_id,))
        if row is None:
            raise ClarificationRequestNotFoundError(interaction_id)
        return self._row_to_clarification_request(row)

    def store_clarification_response(self, response: ClarificationResponse) -> ClarificationResponse:
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO clarification_responses (
                    interaction_id, responses, updated_requirements, updated_project_context, timestamp
                )
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(interaction_id) DO UPDATE SET
                    responses=excluded.responses,
                    updated_requirements=excluded.updated_requirements,
                    updated_project_context=excluded.updated_project_context,
                    timestamp=excluded.timestamp
                """,
                self._clarification_response_params(response),
            )
        return response

    def get_clarification_response(self, interaction_id: str) -> Optional[ClarificationResponse]:
        row = self._fetchone("SELECT * FROM clarification_responses WHERE interaction_id = ?", (interaction_id,))
        return self._row_to_clarification_response(row) if row else None

    def list_clarification_history(self, project_type: str, *, limit: int = 10) -> List[ClarificationHistoryEntry]:
        """Answered creation clarifications for a project type, newest first."""
        rows = self._fetchall(
            """
            SELECT req.interaction_id, req.questions, req.ambiguities, req.contextual_matches,
                   resp.responses, resp.updated_requirements, resp.timestamp AS response_timestamp
            FROM clarification_requests req
            JOIN clarification_responses resp ON req.interaction_id = resp.interaction_id
            WHERE req.type = 'creation' AND json_extract(req.requirements, '$.type') = ?
            ORDER BY resp.timestamp DESC, resp.id DESC
            LIMIT ?
            """,
            (project_type, limit),
        )
        return [self._row_to_history_entry(row) for row in rows]


class PostgresDatabase(_RowConverters):
    """
    PostgreSQL-backed persistence for DaveMode state.
    Requires psycopg>=3. Follows the same contract as the SQLite Database class.
    """

    def __init__(self, db_url: str, pool_size: int = 5) -> None:
        if psycopg is None:
            raise ImportError("psycopg is required for Postgres support. Install psycopg[binary].")

        self.db_url = db_url
        self.row_factory = dict_row
        self.pool = None

        if ConnectionPool:
            self.pool = ConnectionPool(
                conninfo=db_url,
                min_size=1,
                max_size=pool_size,
                kwargs={"row_factory": self.row_factory},
            )

    def _connect(self):
        if self.pool:
            conn = self.pool.connection()
        else:
            conn = psycopg.connect(self.db_url, row_factory=self.row_factory)
        return conn

    @contextmanager
    def _transaction(self):
        """Context manager for database transactions."""
        with self._connect() as conn:
            try:
                yield conn
                conn.commit()
            except Exception:
                conn.rollback()
                raise

    def _fetchone(self, query: str, params: Iterable[Any] = ()) -> Optional[Dict[str, Any]]:
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(query, tuple(params))
                return cur.fetchone()

    def _fetchall(self, query: str, params: Iterable[Any] = ()) -> List[Dict[str, Any]]:
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(query, tuple(params))
                return cur.fetchall() or []

    def init_schema(self) -> None:
        """Initialize database schema."""
        from davemode.db.schema import SCHEMA_POSTGRES

        with self._transaction() as conn:
            with conn.cursor() as cur:
                cur.execute(SCHEMA_POSTGRES)

    # Interactions

    def store_interaction(self, interaction: Interaction) -> Interaction:
        with self._transaction() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO interactions (
                        interaction_id, type, project_type, project_context,
                        requirements, strategy, result, success, timestamp
                    )
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
                    ON CONFLICT (interaction_id) DO UPDATE SET
                        result = excluded.result,
                        success = excluded.success
                    """,
                    self._interaction_params(interaction),
                )
        return interaction

    def list_interactions(
        self,
        *,
        project_type: Optional[str] = None,
        kind: Optional[str] = None,
        limit: int = 10,
    ) -> List[Interaction]:
        clauses: List[str] = []
        params: List[Any] = []
        if project_type is not None:
            clauses.append("project_type = %s")
            params.append(project_type)
        if kind is not None:
            clauses.append("type = %s")
            params.append(kind)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = self._fetchall(
            f"SELECT * FROM interactions {where} ORDER BY timestamp DESC, id DESC LIMIT %s",
            (*params, limit),
        )
        return [self._row_to_interaction(row) for row in rows]

    # Learned patterns

    def get_pattern(self, kind: str, project_type: str) -> Optional[LearnedPattern]:
        row = self._fetchone(
            "SELECT * FROM patterns WHERE pattern_type = %s AND project_type = %s",
            (kind, project_type),
        )
        return self._row_to_pattern(row) if row else None

    def list_patterns(self, kind: Optional[str] = None) -> List[LearnedPattern]:
        if kind is None:
            rows = self._fetchall("SELECT * FROM patterns ORDER BY pattern_type, id")
        else:
            rows = self._fetchall("SELECT * FROM patterns WHERE pattern_type = %s ORDER BY id", (kind,))
        return [self._row_to_pattern(row) for row in rows]

    def update_pattern(self, kind: str, project_type: str, mutate: PatternMutator) -> LearnedPattern:
        """Read-modify-write one pattern row while holding its row lock."""
        with self._transaction() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO patterns (pattern_type, project_type, pattern_data)
                    VALUES (%s, %s, '{}'::jsonb)
                    ON CONFLICT (pattern_type, project_type) DO NOTHING
                    """,
                    (kind, project_type),
                )
                cur.execute(
                    "SELECT * FROM patterns WHERE pattern_type = %s AND project_type = %s FOR UPDATE",
                    (kind, project_type),
                )
                updated = mutate(self._row_to_pattern(cur.fetchone()))
                cur.execute(
                    """
                    UPDATE patterns
                    SET pattern_data = %s, success_rate = %s, uses = %s, updated_at = CURRENT_TIMESTAMP
                    WHERE pattern_type = %s AND project_type = %s
                    """,
                    (json.dumps(updated.to_data()), updated.success_rate, updated.uses, kind, project_type),
                )
        stored = self.get_pattern(kind, project_type)
        if stored is None:
            raise EntityNotFoundError(f"Pattern {kind}/{project_type} not found after upsert")
        return stored

    # Agent performance ledger

    def record_agent_outcome(
        self, agent_name: str, task_type: str, project_type: str, success: bool
    ) -> AgentPerformanceRecord:
        hit = 1 if success else 0
        with self._transaction() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO agent_performance (agent_name, task_type, project_type, uses, successes, success_rate)
                    VALUES (%s, %s, %s, 1, %s, %s)
                    ON CONFLICT (agent_name, task_type, project_type) DO UPDATE SET
                        uses = agent_performance.uses + 1,
                        successes = agent_performance.successes + excluded.successes,
                        success_rate = (agent_performance.successes + excluded.successes)::float
                            / (agent_performance.uses + 1),
                        updated_at = CURRENT_TIMESTAMP
                    RETURNING *
                    """,
                    (agent_name, task_type, project_type, hit, float(hit)),
                )
                row = cur.fetchone()
        return self._row_to_agent_performance(row)

    def list_agent_performance(
        self,
        *,
        agent_name: Optional[str] = None,
        task_type: Optional[str] = None,
        project_type: Optional[str] = None,
    ) -> List[AgentPerformanceRecord]:
        clauses: List[str] = []
        params: List[Any] = []
        for column, value in (("agent_name", agent_name), ("task_type", task_type), ("project_type", project_type)):
            if value is not None:
                clauses.append(f"{column} = %s")
                params.append(value)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = self._fetchall(
            f"SELECT * FROM agent_performance {where} ORDER BY agent_name, task_type, project_type",
            params,
        )
        return [self._row_to_agent_performance(row) for row in rows]

    # Projects

    def store_project(self, project: ProjectSnapshot) -> ProjectSnapshot:
        with self._transaction() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO projects (project_id, name, type, technologies, features, files, validation, timestamp)
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                    ON CONFLICT (project_id) DO UPDATE SET
                        name = excluded.name,
                        type = excluded.type,
                        technologies = excluded.technologies,
                        features = excluded.features,
                        files = excluded.files,
                        validation = excluded.validation,
                        timestamp = excluded.timestamp
                    """,
                    self._project_params(project),
                )
        return project

    def get_project(self, project_id: str) -> ProjectSnapshot:
        row = self._fetchone("SELECT * FROM projects WHERE project_id = %s", (project_id,))
        if row is None:
            raise EntityNotFoundError(f"Project {project_id} not found", metadata={"project_id": project_id})
        return self._row_to_project(row)

    def list_projects(self, *, limit: int = 50) -> List[ProjectSnapshot]:
        rows = self._fetchall("SELECT * FROM projects ORDER BY timestamp DESC, id DESC LIMIT %s", (limit,))
        return [self._row_to_project(row) for row in rows]

    # Clarifications

    def store_clarification_request(self, request: ClarificationRequest) -> ClarificationRequest:
        with self._transaction() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO clarification_requests (
                        interaction_id, type, original_interaction_id, requirements, context,
                        files, project_context, questions, ambiguities, contextual_matches,
                        is_follow_up, timestamp
                    )
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                    ON CONFLICT (interaction_id) DO UPDATE SET
                        type = excluded.type,
                        original_interaction_id = excluded.original_interaction_id,
                        requirements = excluded.requirements,
                        context = excluded.context,
                        files = excluded.files,
                        project_context = excluded.project_context,
                        questions = excluded.questions,
                        ambiguities = excluded.ambiguities,
                        contextual_matches = excluded.contextual_matches,
                        is_follow_up = excluded.is_follow_up,
                        timestamp = excluded.timestamp
                    """,
                    self._clarification_request_params(request),
                )
        return request

    def get_clarification_request(self, interaction_id: str) -> ClarificationRequest:
        row = self._fetchone("SELECT * FROM clarification_requests WHERE interaction_id = %s", (interaction_id,))
        if row is None:
            raise ClarificationRequestNotFoundError(interaction_id)
        return self._row_to_clarification_request(row)

    def store_clarification_response(self, response: ClarificationResponse) -> ClarificationResponse:
        with self._transaction() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO clarification_responses (
                        interaction_id, responses, updated_requirements, updated_project_context, timestamp
                    )
                    VALUES (%s, %s, %s, %s, %s)
                    ON CONFLICT (interaction_id) DO UPDATE SET
                        responses = excluded.responses,
                        updated_requirements = excluded.updated_requirements,
                        updated_project_context = excluded.updated_project_context,
                        timestamp = excluded.timestamp
                    """,
                    self._clarification_response_params(response),
                )
        return response

    def get_clarification_response(self, interaction_id: str) -> Optional[ClarificationResponse]:
        row = self._fetchone("SELECT * FROM clarification_responses WHERE interaction_id = %s", (interaction_id,))
        return self._row_to_clarification_response(row) if row else None

    def list_clarification_history(self, project_type: str, *, limit: int = 10) -> List[ClarificationHistoryEntry]:
        rows = self._fetchall(
            """
            SELECT req.interaction_id, req.questions, req.ambiguities, req.contextual_matches,
                   resp.responses, resp.updated_requirements, resp.timestamp AS response_timestamp
            FROM clarification_requests req
            JOIN clarification_responses resp ON req.interaction_id = resp.interaction_id
            WHERE req.type = 'creation' AND req.requirements->>'type' = %s
            ORDER BY resp.timestamp DESC, resp.id DESC
            LIMIT %s
            """,
            (project_type, limit),
        )
        return [self._row_to_history_entry(row) for row in rows]


# Type alias for the unified database interface
Database = Union[SQLiteDatabase, PostgresDatabase]


def get_database(db_url: Optional[str] = None, db_path: Optional[Path] = None, pool_size: int = 5) -> Database:
    """
    Factory function to create the appropriate database instance.

    Args:
        db_url: PostgreSQL connection URL (postgresql://...)
        db_path: SQLite database file path
        pool_size: Connection pool size for PostgreSQL

    Returns:
        Either SQLiteDatabase or PostgresDatabase instance
    """
    if db_url and db_url.startswith("postgres"):
        logger.info("database_selected", extra={"backend": "postgres", "db_url": db_url})
        return PostgresDatabase(db_url, pool_size=pool_size)

    path = Path(db_path) if db_path else Path(".davemode.sqlite")
    logger.info("database_selected", extra={"backend": "sqlite", "db_path": str(path)})
    return SQLiteDatabase(path)
