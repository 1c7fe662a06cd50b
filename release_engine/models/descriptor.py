"""Typed application descriptor parsed from the per-application XML file"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

from ..exceptions import DescriptorInvalidError, TargetResolutionError
from ..constants import APPLICATION_NAME_PATTERN


@dataclass(frozen=True)
class DeployTarget:
    """A declared deploy target: environment nickname -> server"""
    nickname: str
    server: str


@dataclass(frozen=True)
class DatabaseSettings:
    """Database target declared under DeploySettings/Database"""
    name: str
    primary_server: str
    secondary_server: Optional[str] = None
    scripts_folder: str = "Database"

    @property
    def servers(self) -> List[str]:
        servers = [self.primary_server]
        if self.secondary_server:
            servers.append(self.secondary_server)
        return servers


@dataclass
class ApplicationDescriptor:
    """Strongly-typed view of an application descriptor.

    Produced by a single validating parse step; every structural problem
    surfaces here as a DescriptorInvalidError so that consumers never need
    to check for missing elements themselves.
    """

    name: str
    notification_emails: List[str]
    source_path: Optional[str] = None
    deploy_targets: Dict[str, DeployTarget] = field(default_factory=dict)
    database: Optional[DatabaseSettings] = None
    build_tasks: Optional[ET.Element] = None
    deploy_tasks: Optional[ET.Element] = None
    path: Optional[Path] = None

    @property
    def nicknames(self) -> List[str]:
        return list(self.deploy_targets)

    def resolve_target(self, nickname: str) -> DeployTarget:
        """Resolve an environment nickname to its declared target

        Raises:
            TargetResolutionError: If the nickname is not declared
        """
        target = self.deploy_targets.get((nickname or "").strip().upper())
        if target is None:
            raise TargetResolutionError(nickname, self.nicknames)
        return target

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'ApplicationDescriptor':
        """Parse and validate a descriptor file"""
        path = Path(path)
        if not path.is_file():
            raise DescriptorInvalidError("Descriptor file not found", str(path))

        try:
            root = ET.parse(path).getroot()
        except ET.ParseError as e:
            raise DescriptorInvalidError(f"Malformed XML: {e}", str(path))

        descriptor = cls._from_element(root, str(path))
        descriptor.path = path
        return descriptor

    @classmethod
    def from_string(cls, text: str) -> 'ApplicationDescriptor':
        """Parse and validate descriptor XML text"""
        try:
            root = ET.fromstring(text)
        except ET.ParseError as e:
            raise DescriptorInvalidError(f"Malformed XML: {e}")
        return cls._from_element(root, None)

    @classmethod
    def _from_element(cls, root: ET.Element, source: Optional[str]) -> 'ApplicationDescriptor':
        if root.tag != "Application":
            raise DescriptorInvalidError(
                f"Root element must be <Application>, found <{root.tag}>", source
            )

        general = root.find("General")
        if general is None:
            raise DescriptorInvalidError("Missing <General> section", source)

        name = _text(general, "Name")
        if not name:
            raise DescriptorInvalidError("Missing General/Name", source)
        name = name.upper()
        if not APPLICATION_NAME_PATTERN.match(name):
            raise DescriptorInvalidError(f"Invalid application name: {name}", source)

        emails_node = general.find("NotificationEmails")
        if emails_node is None:
            raise DescriptorInvalidError("Missing General/NotificationEmails", source)
        emails = [e.text.strip() for e in emails_node.findall("Email") if e.text and e.text.strip()]
        if not emails:
            raise DescriptorInvalidError("General/NotificationEmails has no <Email> entries", source)

        deploy_settings = root.find("DeploySettings")

        return cls(
            name=name,
            notification_emails=emails,
            source_path=_text(general, "SourcePath"),
            deploy_targets=_parse_targets(deploy_settings, source),
            database=_parse_database(deploy_settings, source),
            build_tasks=root.find("BuildSettings/BuildTasks/TaskProcess"),
            deploy_tasks=root.find("DeploySettings/DeployTasks/TaskProcess"),
        )


def _text(node: ET.Element, tag: str) -> Optional[str]:
    child = node.find(tag)
    if child is None or child.text is None:
        return None
    return child.text.strip() or None


def _value(node: ET.Element, name: str) -> Optional[str]:
    # Accept both attribute and child-element spellings
    value = node.get(name)
    if value is None:
        value = _text(node, name)
    return value.strip() if value else None


def _parse_targets(deploy_settings: Optional[ET.Element], source: Optional[str]) -> Dict[str, DeployTarget]:
    targets: Dict[str, DeployTarget] = {}
    if deploy_settings is None:
        return targets

    for node in deploy_settings.findall("DeployTargets/Target"):
        server = _value(node, "Name")
        nickname = _value(node, "NickName")
        if not server or not nickname:
            raise DescriptorInvalidError("Deploy target requires Name and NickName", source)
        nickname = nickname.upper()
        if nickname in targets:
            raise DescriptorInvalidError(f"Duplicate deploy target nickname: {nickname}", source)
        targets[nickname] = DeployTarget(nickname=nickname, server=server)

    return targets


def _parse_database(deploy_settings: Optional[ET.Element], source: Optional[str]) -> Optional[DatabaseSettings]:
    if deploy_settings is None:
        return None

    node = deploy_settings.find("Database")
    if node is None:
        return None

    name = _value(node, "Name")
    primary = _value(node, "PrimaryServer")
    if not name or not primary:
        raise DescriptorInvalidError("Database requires Name and PrimaryServer", source)

    return DatabaseSettings(
        name=name,
        primary_server=primary,
        secondary_server=_value(node, "SecondaryServer"),
        scripts_folder=_value(node, "ScriptsFolder") or "Database",
    )


def list_application_names(config_dir: Union[str, Path]) -> List[str]:
    """List application names derived from a descriptor directory

    One XML descriptor per application; the file stem is the name.
    """
    config_dir = Path(config_dir)
    if not config_dir.is_dir():
        return []
    return sorted({p.stem.upper() for p in config_dir.glob("*.xml") if p.is_file()})


def find_descriptor_file(config_dir: Union[str, Path], application: str) -> Optional[Path]:
    """Locate the descriptor for an application (case-insensitive)"""
    config_dir = Path(config_dir)
    if not config_dir.is_dir():
        return None
    for candidate in config_dir.glob("*.xml"):
        if candidate.stem.upper() == application.upper():
            return candidate
    return None
