"""Database deploy: server failover and mirroring control around SQL scripts"""

import asyncio
import logging
from abc import ABC, abstractmethod
from functools import partial
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ..constants import (
    DATABASE_ONLINE,
    MIRRORING_ACTIVE_STATES,
    MIRRORING_SUSPENDED,
    MSG_FAILOVER_RETRY,
    MSG_MIRRORING_RESUMED,
    MSG_MIRRORING_SUSPENDED,
    SQL_BATCH_SEPARATOR,
    SQL_FOLDER_ORDER,
)
from ..core.polling import poll_until
from ..core.task_process import Task, render
from ..exceptions import (
    DatabaseFailoverError,
    DatabaseScriptError,
    DescriptorInvalidError,
    ReleaseEngineError,
)
from ..models.config import DatabaseConfig
from ..models.context import TaskContext
from ..models.descriptor import DatabaseSettings

logger = logging.getLogger(__name__)


class DatabaseGateway(ABC):
    """Blocking access to the database servers of a deploy target"""

    @abstractmethod
    def is_online(self, server: str, database: str) -> bool:
        pass

    @abstractmethod
    def mirroring_state(self, server: str, database: str) -> Optional[str]:
        """Mirroring state description, or None when the database is not mirrored"""
        pass

    @abstractmethod
    def suspend_mirroring(self, server: str, database: str) -> None:
        pass

    @abstractmethod
    def resume_mirroring(self, server: str, database: str) -> None:
        pass

    @abstractmethod
    def execute_script(self, server: str, database: str, name: str, batches: List[str]) -> None:
        """Run the batches of one script; raise DatabaseScriptError on the first failure"""
        pass

    def close(self) -> None:
        pass


class SqlAlchemyGateway(DatabaseGateway):
    """SQL Server gateway built on SQLAlchemy engines (one per server/database)"""

    STATE_QUERY = text("SELECT state_desc FROM sys.databases WHERE name = :name")
    MIRRORING_QUERY = text(
        "SELECT m.mirroring_state_desc FROM sys.database_mirroring m "
        "JOIN sys.databases d ON d.database_id = m.database_id "
        "WHERE d.name = :name AND m.mirroring_guid IS NOT NULL"
    )

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self._engines: Dict[Tuple[str, str], Engine] = {}

    def _engine(self, server: str, database: str) -> Engine:
        key = (server.upper(), database)
        if key not in self._engines:
            url = self.config.url_template.format(server=server, database=database)
            self._engines[key] = create_engine(url, isolation_level="AUTOCOMMIT")
        return self._engines[key]

    def is_online(self, server: str, database: str) -> bool:
        try:
            with self._engine(server, "master").connect() as conn:
                state = conn.execute(self.STATE_QUERY, {"name": database}).scalar()
        except SQLAlchemyError as e:
            logger.debug("State query on %s failed: %s", server, e)
            return False
        return (state or "").upper() == DATABASE_ONLINE

    def mirroring_state(self, server: str, database: str) -> Optional[str]:
        try:
            with self._engine(server, "master").connect() as conn:
                state = conn.execute(self.MIRRORING_QUERY, {"name": database}).scalar()
        except SQLAlchemyError as e:
            raise DatabaseScriptError("mirroring state query", str(e))
        return state.upper() if state else None

    def _alter_partner(self, server: str, database: str, action: str) -> None:
        statement = f"ALTER DATABASE [{database}] SET PARTNER {action}"
        try:
            with self._engine(server, "master").connect() as conn:
                conn.execute(text(statement))
        except SQLAlchemyError as e:
            raise DatabaseScriptError(statement, str(e))

    def suspend_mirroring(self, server: str, database: str) -> None:
        self._alter_partner(server, database, "SUSPEND")

    def resume_mirroring(self, server: str, database: str) -> None:
        self._alter_partner(server, database, "RESUME")

    def execute_script(self, server: str, database: str, name: str, batches: List[str]) -> None:
        try:
            with self._engine(server, database).connect() as conn:
                for batch in batches:
                    conn.execute(text(batch))
        except SQLAlchemyError as e:
            raise DatabaseScriptError(name, str(getattr(e, "orig", None) or e))

    def close(self) -> None:
        for engine in self._engines.values():
            engine.dispose()
        self._engines.clear()


def split_batches(sql: str) -> List[str]:
    """Split a script on ``GO`` separator lines"""
    return [batch.strip() for batch in SQL_BATCH_SEPARATOR.split(sql) if batch.strip()]


def collect_scripts(scripts_root: Path) -> List[Path]:
    """Scripts in dependency-folder order, lexically sorted within each folder"""
    scripts = []
    for folder_name in SQL_FOLDER_ORDER:
        folder = scripts_root / folder_name
        if not folder.is_dir():
            continue
        scripts.extend(sorted(
            (p for p in folder.iterdir() if p.is_file() and p.suffix.lower() == ".sql"),
            key=lambda p: p.name
        ))
    return scripts


class DatabaseDeployer:
    """Apply a package's SQL scripts to a mirrored database pair"""

    def __init__(self, gateway: DatabaseGateway, config: Optional[DatabaseConfig] = None):
        self.gateway = gateway
        self.config = config or DatabaseConfig()

    async def _call(self, func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args))

    async def select_server(self, settings: DatabaseSettings) -> str:
        """First online server of the ordered pair

        Raises:
            DatabaseFailoverError: If no server is online
        """
        servers = settings.servers
        for index, server in enumerate(servers):
            if await self._call(self.gateway.is_online, server, settings.name):
                logger.info("Using database server %s for %s", server, settings.name)
                return server
            if index + 1 < len(servers):
                logger.warning(MSG_FAILOVER_RETRY.format(server=server, fallback=servers[index + 1]))
        raise DatabaseFailoverError(settings.name, servers)

    async def _suspend_if_active(self, server: str, database: str) -> bool:
        state = await self._call(self.gateway.mirroring_state, server, database)
        if state not in MIRRORING_ACTIVE_STATES:
            logger.info("Mirroring not active for %s on %s (%s)", database, server, state or "none")
            return False
        await self._call(self.gateway.suspend_mirroring, server, database)
        logger.warning(MSG_MIRRORING_SUSPENDED.format(database=database, server=server))
        return True

    async def _resume_if_suspended(self, server: str, database: str, suspended_here: bool) -> None:
        state = await self._call(self.gateway.mirroring_state, server, database)
        if state != MIRRORING_SUSPENDED:
            return
        if not suspended_here:
            logger.warning("Mirroring for %s on %s was already suspended, leaving it", database, server)
            return

        await self._call(self.gateway.resume_mirroring, server, database)

        async def resumed():
            current = await self._call(self.gateway.mirroring_state, server, database)
            return current != MIRRORING_SUSPENDED

        await poll_until(resumed, self.config.poll_interval, self.config.max_wait,
                         f"mirroring to resume for {database}")
        logger.info(MSG_MIRRORING_RESUMED.format(database=database, server=server))

    async def apply_scripts(self, server: str, database: str, scripts_root: Path) -> List[Path]:
        """Apply every script in order; the first failure aborts the rest"""
        scripts = collect_scripts(scripts_root)
        if not scripts:
            logger.info("No SQL scripts under %s", scripts_root)
        for script in scripts:
            name = f"{script.parent.name}/{script.name}"
            logger.info("Applying %s", name)
            try:
                batches = split_batches(script.read_text(encoding="utf-8-sig"))
            except UnicodeDecodeError as e:
                raise DatabaseScriptError(name, f"not UTF-8 encoded ({e.reason} at byte {e.start})")
            await self._call(self.gateway.execute_script, server, database, name, batches)
        return scripts

    async def deploy(self, settings: DatabaseSettings, scripts_root: Path) -> str:
        """Select a server, then apply scripts with mirroring suspended

        Mirroring suspended by this call is resumed on every exit path.

        Returns:
            The server the scripts were applied to
        """
        server = await self.select_server(settings)
        suspended_here = await self._suspend_if_active(server, settings.name)

        failed = True
        try:
            await self.apply_scripts(server, settings.name, scripts_root)
            failed = False
        finally:
            try:
                await self._resume_if_suspended(server, settings.name, suspended_here)
            except ReleaseEngineError as e:
                if not failed:
                    raise
                logger.error("Failed to resume mirroring for %s on %s: %s", settings.name, server, e)

        return server


class DatabaseDeployTask(Task):
    """Apply the package's SQL scripts to the descriptor's database.

    <Task Type="DatabaseDeploy" Name="Schema" ScriptsFolder="${root}/Database"/>

    Database, PrimaryServer, SecondaryServer and ScriptsFolder attributes
    override the descriptor's DeploySettings/Database values.
    """

    type_name = "DatabaseDeploy"

    def configure(self, element) -> None:
        self.database = element.get("Database")
        self.primary_server = element.get("PrimaryServer")
        self.secondary_server = element.get("SecondaryServer")
        self.scripts_folder = element.get("ScriptsFolder")

    def settings(self, context: TaskContext) -> DatabaseSettings:
        declared = context.descriptor.database if context.descriptor else None
        name = self.database or (declared.name if declared else None)
        primary = self.primary_server or (declared.primary_server if declared else None)
        if not name or not primary:
            raise DescriptorInvalidError(
                f"Task '{self.name}' needs a database name and primary server "
                "(DeploySettings/Database or task attributes)"
            )
        return DatabaseSettings(
            name=render(name, context),
            primary_server=render(primary, context),
            secondary_server=render(
                self.secondary_server or (declared.secondary_server if declared else None), context
            ),
            scripts_folder=render(
                self.scripts_folder or (declared.scripts_folder if declared else "Database"), context
            ),
        )

    async def run(self, context: TaskContext) -> None:
        deployer: Optional[DatabaseDeployer] = self.resources.get("database_deployer")
        if deployer is None:
            raise DescriptorInvalidError(f"Task '{self.name}' is not available in this process")

        settings = self.settings(context)
        scripts_root = Path(settings.scripts_folder)
        if not scripts_root.is_absolute():
            scripts_root = context.root_folder / scripts_root

        server = await deployer.deploy(settings, scripts_root)
        context.outputs["database_server"] = server
