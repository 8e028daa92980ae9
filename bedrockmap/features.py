"""GeoJSON point features describing blocks and spawnable locations."""

from __future__ import annotations

from typing import Any


def geojson_feature(x: float, y: float, properties: dict[str, Any]) -> dict[str, Any]:
    """A GeoJSON point feature at image coordinates (x, y)."""
    return {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": [x, y]},
        "properties": properties,
    }


def block_feature(
    name: str,
    dimension_id: int,
    position: tuple[int, int, int],
    point: tuple[float, float],
) -> dict[str, Any]:
    """Feature marking a block selected for GeoJSON output."""
    return geojson_feature(
        point[0],
        point[1],
        {
            "Name": name,
            "Block": True,
            "Dimension": str(dimension_id),
            "Pos": list(position),
        },
    )


def spawnable_feature(
    light_level: int,
    dimension_id: int,
    position: tuple[int, int, int],
    point: tuple[float, float],
) -> dict[str, Any]:
    """Feature marking a block on which mobs can spawn."""
    return geojson_feature(
        point[0],
        point[1],
        {
            "Spawnable": True,
            "Name": "Spawnable",
            "LightLevel": str(light_level),
            "Dimension": str(dimension_id),
            "Pos": list(position),
        },
    )


def spawn_circle_feature(
    dimension_id: int,
    radius: int,
    position: tuple[int, int, int],
    point: tuple[float, float],
) -> dict[str, Any]:
    """Feature describing the bounding circle of a spawnability check."""
    return geojson_feature(
        point[0],
        point[1],
        {
            "Spawnable": True,
            "Name": "SpawnableBoundingCircle",
            "BoundingCircle": "1",
            "Clickable": "0",
            "Dimension": str(dimension_id),
            "Radius": str(radius),
            "Pos": list(position),
        },
    )