from typing import List, Optional

from pydantic import BaseModel

from app.services.colors import CanonicalColor


class RGBModel(BaseModel):
    r: int
    g: int
    b: int


class HSBModel(BaseModel):
    h: int
    s: int
    b: int


class ColorModel(BaseModel):
    hex: str
    rgb: RGBModel
    hsb: HSBModel
    name: Optional[str] = None
    """Nearest named color; omitted when name lookup is disabled."""

    @classmethod
    def from_canonical(cls, color: CanonicalColor) -> "ColorModel":
        r, g, b = color.rgb
        h, s, v = color.hsb
        return cls(
            hex=color.hex,
            rgb=RGBModel(r=r, g=g, b=b),
            hsb=HSBModel(h=h, s=s, b=v),
            name=color.name,
        )


class ColorsResponse(BaseModel):
    colors: List[ColorModel]
    message: Optional[str] = None


class ErrorResponse(BaseModel):
    error: str
    message: Optional[str] = None
