"""Game data (biomes, blocks, items, entities, enchantments) loaded from XML."""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterator

_INT_PATTERN = re.compile(r"[+-]?(?:0[xX][0-9a-fA-F]+|\d+)")


class XmlLoadError(ValueError):
    """Raised when the game data XML is malformed or inconsistent."""


class EntityType(Enum):
    """Broad classification of an entity."""

    UNKNOWN = ""
    H = "H"
    P = "P"


@dataclass
class Biome:
    id: int
    name: str
    color: int | None = None


@dataclass
class BlockVariant:
    data: int
    name: str
    color: int | None = None
    spawnable: bool = True


@dataclass
class Block:
    id: int
    name: str
    color: int | None = None
    solid: bool = True
    opaque: bool = True
    liquid: bool = False
    spawnable: bool = True
    unames: list[str] = field(default_factory=list)
    variants: dict[int, BlockVariant] = field(default_factory=dict)

    @property
    def has_variants(self) -> bool:
        return bool(self.variants)

    def add_variant(self, data: int, name: str) -> BlockVariant:
        """Register a variant for the given block data value."""
        if data in self.variants:
            raise ValueError(f"block {self.name!r} already has variant data={data}")
        variant = BlockVariant(data=data, name=name)
        self.variants[data] = variant
        return variant

    def variant_for(self, data: int) -> BlockVariant | None:
        """Return the variant for a block data value, if one is known."""
        return self.variants.get(data)

    def is_spawnable(self, data: int) -> bool:
        """Whether mobs may spawn on top of this block with the given data."""
        variant = self.variant_for(data)
        if variant is not None:
            return variant.spawnable
        return self.spawnable


@dataclass
class ItemVariant:
    extra_data: int
    name: str


@dataclass
class Item:
    id: int
    name: str
    unames: list[str] = field(default_factory=list)
    variants: dict[int, ItemVariant] = field(default_factory=dict)

    def add_variant(self, extra_data: int, name: str) -> ItemVariant:
        """Register a variant for the given extra data value."""
        if extra_data in self.variants:
            raise ValueError(
                f"item {self.name!r} already has variant extradata={extra_data}"
            )
        variant = ItemVariant(extra_data=extra_data, name=name)
        self.variants[extra_data] = variant
        return variant


@dataclass
class EntityVariant:
    extra_data: int
    name: str


@dataclass
class Entity:
    id: int
    name: str
    etype: EntityType = EntityType.UNKNOWN
    unames: list[str] = field(default_factory=list)
    variants: dict[int, EntityVariant] = field(default_factory=dict)

    def add_variant(self, extra_data: int, name: str) -> EntityVariant:
        """Register a variant for the given extra data value."""
        if extra_data in self.variants:
            raise ValueError(
                f"entity {self.name!r} already has variant extradata={extra_data}"
            )
        variant = EntityVariant(extra_data=extra_data, name=name)
        self.variants[extra_data] = variant
        return variant


@dataclass
class Enchantment:
    id: int
    name: str
    official_name: str


def _add(table: dict, key: int, value, kind: str):
    if key in table:
        raise ValueError(f"duplicate {kind} id {key}")
    table[key] = value
    return value


@dataclass
class Registry:
    """All known game data, keyed by numeric id."""

    biomes: dict[int, Biome] = field(default_factory=dict)
    blocks: dict[int, Block] = field(default_factory=dict)
    items: dict[int, Item] = field(default_factory=dict)
    entities: dict[int, Entity] = field(default_factory=dict)
    enchantments: dict[int, Enchantment] = field(default_factory=dict)

    def add_biome(self, biome_id: int, name: str) -> Biome:
        return _add(self.biomes, biome_id, Biome(biome_id, name), "biome")

    def biome(self, biome_id: int) -> Biome | None:
        return self.biomes.get(biome_id)

    def add_block(self, block_id: int, name: str) -> Block:
        return _add(self.blocks, block_id, Block(block_id, name), "block")

    def block(self, block_id: int) -> Block | None:
        return self.blocks.get(block_id)

    def block_by_uname(self, uname: str) -> Block | None:
        """Find the block that carries the given unique (namespaced) name."""
        return next((b for b in self.blocks.values() if uname in b.unames), None)

    def add_item(self, item_id: int, name: str) -> Item:
        return _add(self.items, item_id, Item(item_id, name), "item")

    def add_entity(self, entity_id: int, name: str) -> Entity:
        return _add(self.entities, entity_id, Entity(entity_id, name), "entity")

    def add_enchantment(
        self, enchantment_id: int, name: str, official_name: str
    ) -> Enchantment:
        return _add(
            self.enchantments,
            enchantment_id,
            Enchantment(enchantment_id, name, official_name),
            "enchantment",
        )


def _attr_int(element: ET.Element, name: str, default: int = 0) -> int:
    raw = element.get(name)
    if raw is None:
        return default
    match = _INT_PATTERN.match(raw.strip())
    if not match:
        return 0
    token = match.group(0)
    negative = token.startswith("-")
    body = token.lstrip("+-")
    value = int(body, 16) if body[:2].lower() == "0x" else int(body, 10)
    return -value if negative else value


def _attr_bool(element: ET.Element, name: str, default: bool) -> bool:
    raw = element.get(name)
    if raw is None:
        return default
    raw = raw.strip()
    return bool(raw) and raw[0] in "1tTyY"


def _attr_str(element: ET.Element, name: str) -> str:
    return element.get(name, "")


def _unames(element: ET.Element) -> list[str]:
    return [u for u in _attr_str(element, "uname").split(";") if u]


def _children(node: ET.Element | None, tag: str) -> Iterator[ET.Element]:
    if node is None:
        return iter(())
    return iter(node.findall(tag))


def load_biomes(node: ET.Element | None, registry: Registry) -> None:
    """Load <biome> children of a biome list element."""
    for element in _children(node, "biome"):
        name = _attr_str(element, "name")
        biome_id = _attr_int(element, "id")
        try:
            biome = registry.add_biome(biome_id, name)
        except ValueError as exc:
            raise XmlLoadError(f"add biome failed (name={name}, id={biome_id})") from exc
        biome.color = _attr_int(element, "color")


def load_blocks(node: ET.Element | None, registry: Registry) -> None:
    """Load <block> children of a block list element."""
    for element in _children(node, "block"):
        name = _attr_str(element, "name")
        block_id = _attr_int(element, "id", -1)
        if block_id == -1 or not name:
            raise XmlLoadError(f"add block failed (name={name}, id={block_id})")
        try:
            block = registry.add_block(block_id, name)
        except ValueError as exc:
            raise XmlLoadError(
                f"add block failed (name={name}, id=0x{block_id:x})"
            ) from exc

        color = _attr_int(element, "color", -1)
        if color != -1:
            block.color = color
        block.unames.extend(_unames(element))
        block.solid = _attr_bool(element, "solid", True)
        block.opaque = _attr_bool(element, "opaque", True)
        block.liquid = _attr_bool(element, "liquid", False)
        block.spawnable = _attr_bool(element, "spawnable", True)

        for var_element in _children(element, "blockvariant"):
            var_name = _attr_str(var_element, "name")
            var_data = _attr_int(var_element, "blockdata")
            var_color = _attr_int(var_element, "color", -1)
            var_dcolor = _attr_int(var_element, "dcolor", -1)
            if not var_name:
                raise XmlLoadError(
                    f"add block variant failed (name={var_name}, data={var_data})"
                )
            try:
                variant = block.add_variant(var_data, var_name)
            except ValueError as exc:
                raise XmlLoadError(
                    f"add block variant failed (name={var_name}, data={var_data})"
                ) from exc
            if var_color != -1:
                if var_dcolor != -1:
                    var_color += var_dcolor
                variant.color = var_color
            elif block.color is not None:
                variant.color = block.color + var_data
            if var_element.get("spawnable") is not None:
                variant.spawnable = _attr_bool(var_element, "spawnable", True)
            else:
                variant.spawnable = block.spawnable


def load_items(node: ET.Element | None, registry: Registry) -> None:
    """Load <item> children of an item list element."""
    for element in _children(node, "item"):
        name = _attr_str(element, "name")
        item_id = _attr_int(element, "id", -1)
        if item_id == -1 or not name:
            raise XmlLoadError(f"add item failed (name={name}, id={item_id})")
        try:
            item = registry.add_item(item_id, name)
        except ValueError as exc:
            raise XmlLoadError(f"add item failed (name={name}, id={item_id})") from exc
        item.unames.extend(_unames(element))

        for var_element in _children(element, "itemvariant"):
            var_name = _attr_str(var_element, "name")
            extra_data = _attr_int(var_element, "extradata", -1)
            if not var_name or extra_data == -1:
                raise XmlLoadError(
                    f"add item variant failed (name={var_name}, data={extra_data})"
                )
            try:
                item.add_variant(extra_data, var_name)
            except ValueError as exc:
                raise XmlLoadError(
                    f"add item variant failed (name={var_name}, data={extra_data})"
                ) from exc


def load_entities(node: ET.Element | None, registry: Registry) -> None:
    """Load <entity> children of an entity list element."""
    for element in _children(node, "entity"):
        name = _attr_str(element, "name")
        entity_id = _attr_int(element, "id", -1)
        if entity_id == -1 or not name:
            raise XmlLoadError(f"add entity failed (name={name}, id={entity_id})")
        try:
            entity = registry.add_entity(entity_id, name)
        except ValueError as exc:
            raise XmlLoadError(
                f"add entity failed (name={name}, id={entity_id:x})"
            ) from exc
        etype = _attr_str(element, "etype")
        if etype == "H":
            entity.etype = EntityType.H
        elif etype == "P":
            entity.etype = EntityType.P
        entity.unames.extend(_unames(element))

        for var_element in _children(element, "entityvariant"):
            var_name = _attr_str(var_element, "name")
            extra_data = _attr_int(var_element, "extradata", -1)
            if not var_name or extra_data == -1:
                raise XmlLoadError(
                    f"add entity variant failed (name={var_name}, data={extra_data})"
                )
            try:
                entity.add_variant(extra_data, var_name)
            except ValueError as exc:
                raise XmlLoadError(
                    f"add entity variant failed (name={var_name}, data={extra_data})"
                ) from exc


def load_enchantments(node: ET.Element | None, registry: Registry) -> None:
    """Load <enchantment> children of an enchantment list element."""
    for element in _children(node, "enchantment"):
        name = _attr_str(element, "name")
        official_name = _attr_str(element, "officialName")
        enchantment_id = _attr_int(element, "id", -1)
        if not name or enchantment_id == -1 or not official_name:
            raise XmlLoadError(
                f"add enchantment failed (name={name}, id={enchantment_id})"
            )
        try:
            registry.add_enchantment(enchantment_id, name, official_name)
        except ValueError as exc:
            raise XmlLoadError(
                f"add enchantment failed (name={name}, id={enchantment_id})"
            ) from exc


def load_xml(path: str | Path, registry: Registry) -> Registry:
    """Load every data list from an XML file into the registry."""
    try:
        root = ET.parse(path).getroot()
    except (ET.ParseError, OSError) as exc:
        raise XmlLoadError(f"xml file ({path}) not parsed successfully: {exc}") from exc

    if root.tag != "xml":
        return registry

    loaders = (
        ("biomelist", load_biomes, "biomelist"),
        ("blocklist", load_blocks, "blocklist"),
        ("itemlist", load_items, "itemlist"),
        ("entitylist", load_entities, "entity"),
        ("enchantmentlist", load_enchantments, "enchantment"),
    )
    for tag, loader, label in loaders:
        try:
            loader(root.find(tag), registry)
        except XmlLoadError as exc:
            raise XmlLoadError(f"{label} parse failed: {exc}") from exc
    return registry