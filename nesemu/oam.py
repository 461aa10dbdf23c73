"""Object attribute memory: the table of 64 hardware sprites."""

from dataclasses import dataclass, field

OAM_SIZE = 64
SPRITE_BYTES = 4


def _signed(value: int) -> int:
    value &= 0xFF
    return value - 0x100 if value & 0x80 else value


@dataclass
class Sprite:
    """One OAM entry; every field holds a signed 8-bit value."""

    y_pos: int = 0
    tile_index: int = 0
    attributes: int = 0
    x_pos: int = 0

    def __str__(self) -> str:
        return (
            f"Sprite(x={self.x_pos}, y={self.y_pos}, "
            f"tile={self.tile_index}, attr={self.attributes})"
        )


@dataclass
class OAM:
    """The full sprite table."""

    sprites: list = field(default_factory=lambda: [Sprite() for _ in range(OAM_SIZE)])

    def load(self, data) -> None:
        """Overwrite sprites from raw bytes, four per sprite, starting at sprite 0."""
        data = bytes(data)
        if len(data) > OAM_SIZE * SPRITE_BYTES:
            raise ValueError(
                f"OAM holds at most {OAM_SIZE * SPRITE_BYTES} bytes, got {len(data)}"
            )
        for offset, value in enumerate(data):
            sprite = self.sprites[offset // SPRITE_BYTES]
            name = ("y_pos", "tile_index", "attributes", "x_pos")[offset % SPRITE_BYTES]
            setattr(sprite, name, _signed(value))