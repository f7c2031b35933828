"""People credited on a series.

Creator role labels are classified into person kinds through a role
table. The bundled table maps roughly 2200 AniDB labels; a different
table can be loaded from a JSON file of ``{"label": "Kind"}`` pairs.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from importlib import resources
from pathlib import Path
from xml.etree.ElementTree import Element

import orjson

from anifetch.shared.constants import AniDBEndpoints, CreatorRoles, DescriptionRules, Elements
from anifetch.shared.errors import create_config_error
from anifetch.shared.models.metadata import CachedPersonInfo, PersonKind, PersonRecord

logger = logging.getLogger(__name__)

ROLE_TABLE_PACKAGE = "anifetch.data"
ROLE_TABLE_RESOURCE = "creator_roles.json"


class RoleMap:
    """Creator role label to PersonKind lookup.

    A label that is itself a kind name (``"Director"``) classifies
    directly; otherwise the table is consulted; unknown labels fall back
    to ``PersonKind.ACTOR``.
    """

    def __init__(self, mapping: Mapping[str, PersonKind], default: PersonKind = PersonKind.ACTOR) -> None:
        self._mapping = dict(mapping)
        self.default = default

    def __len__(self) -> int:
        return len(self._mapping)

    def __contains__(self, label: object) -> bool:
        return label in self._mapping

    def classify(self, label: str | None) -> PersonKind:
        kind = PersonKind.from_name(label)
        if kind is not None:
            return kind
        if label is None:
            return self.default
        return self._mapping.get(label, self.default)

    @classmethod
    def from_json(cls, data: bytes | str, source: str = "<memory>") -> RoleMap:
        """Parse a ``{"label": "Kind"}`` JSON object.

        Raises:
            ApplicationError: The JSON is invalid or names an unknown kind.
        """
        try:
            raw = orjson.loads(data)
        except orjson.JSONDecodeError as e:
            raise create_config_error(
                f"Role table {source} is not valid JSON: {e}",
                config_key="role_map_path",
                operation="load_role_map",
                original_error=e,
            ) from e

        if not isinstance(raw, dict):
            raise create_config_error(
                f"Role table {source} must be a JSON object",
                config_key="role_map_path",
                operation="load_role_map",
            )

        mapping: dict[str, PersonKind] = {}
        for label, kind_name in raw.items():
            kind = PersonKind.from_name(kind_name)
            if kind is None:
                raise create_config_error(
                    f"Role table {source} maps {label!r} to unknown kind {kind_name!r}",
                    config_key="role_map_path",
                    operation="load_role_map",
                )
            mapping[label] = kind
        return cls(mapping)

    @classmethod
    def from_file(cls, path: str | Path) -> RoleMap:
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise create_config_error(
                f"Cannot read role table {path}: {e}",
                config_key="role_map_path",
                operation="load_role_map",
                original_error=e,
            ) from e
        return cls.from_json(data, source=str(path))

    @classmethod
    def load_default(cls) -> RoleMap:
        """Load the role table bundled with the package."""
        data = resources.files(ROLE_TABLE_PACKAGE).joinpath(ROLE_TABLE_RESOURCE).read_bytes()
        role_map = cls.from_json(data, source=ROLE_TABLE_RESOURCE)
        logger.debug("Loaded %d creator roles", len(role_map))
        return role_map

    @classmethod
    def load(cls, path: str | Path | None = None) -> RoleMap:
        return cls.from_file(path) if path else cls.load_default()


def reverse_name_order(name: str) -> str:
    """Turn AniDB's family-name-first order around (``"Miyazaki Hayao"``)."""
    return " ".join(reversed(name.split())).strip()


def replace_graves(text: str) -> str:
    return text.replace(DescriptionRules.GRAVE, DescriptionRules.APOSTROPHE)


def image_url(picture: str | None) -> str | None:
    if not picture:
        return None
    return AniDBEndpoints.IMAGE_CDN + picture


class PersonBuilder:
    """Creates PersonRecords for cast and crew entries.

    Args:
        role_map: Creator role classification table
        replace_graves: Replace ` with ' in names
    """

    def __init__(self, role_map: RoleMap, *, replace_graves: bool = True) -> None:
        self.role_map = role_map
        self.replace_graves = replace_graves

    def display_name(self, name: str) -> str:
        if self.replace_graves:
            name = replace_graves(name)
        # TODO: keep the original order for people whose nationality puts the given name first
        return reverse_name_order(name)

    def crew(
        self,
        name: str,
        role_label: str | None,
        *,
        provider_id: str | None = None,
    ) -> PersonRecord:
        return PersonRecord(
            name=self.display_name(name),
            kind=self.role_map.classify(role_label),
            provider_id=provider_id,
        )

    def cast(
        self,
        performer: str | None,
        character: str | None,
        *,
        picture: str | None = None,
        provider_id: str | None = None,
    ) -> PersonRecord | None:
        """Voice actor entry; None unless both names are present."""
        if not performer or not character:
            return None
        return PersonRecord(
            name=self.display_name(performer),
            kind=PersonKind.ACTOR,
            role=character,
            image_url=image_url(picture),
            provider_id=provider_id,
        )


def cached_people_from_characters(characters: Element) -> Iterator[CachedPersonInfo]:
    """Person cache records for every seiyuu in a ``<characters>`` tree."""
    for character in characters.iter(Elements.CHARACTER):
        seiyuu = character.find(Elements.SEIYUU)
        if seiyuu is None:
            continue
        name = reverse_name_order("".join(seiyuu.itertext()))
        if not name:
            continue
        yield CachedPersonInfo(
            name=name,
            image=image_url(seiyuu.get(Elements.PICTURE)),
            id=seiyuu.get(Elements.ID) or None,
        )


def cached_people_from_creators(creators: Element) -> Iterator[CachedPersonInfo]:
    """Person cache records for a ``<creators>`` tree, studios excluded."""
    for creator in creators.iter(Elements.NAME):
        if creator.get(Elements.TYPE) == CreatorRoles.STUDIO:
            continue
        name = reverse_name_order("".join(creator.itertext()))
        if not name:
            continue
        yield CachedPersonInfo(name=name, id=creator.get(Elements.ID) or None)
