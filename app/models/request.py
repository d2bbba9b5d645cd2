from typing import Literal, Optional

from pydantic import BaseModel, Field, HttpUrl


class ColorRequest(BaseModel):
    url: HttpUrl
    include_names: Optional[bool] = Field(
        default=None,
        description="Attach the nearest named color to every entry. Defaults to the server setting.",
    )
    sort: Optional[Literal["none", "asc", "desc"]] = None
    """Output ordering.

    ``"none"``
        First-seen order across linked stylesheets, ``<style>`` blocks and
        inline ``style`` attributes.

    ``"asc"`` / ``"desc"``
        By relative luminance, darkest first / lightest first.

    Omit to use the server default.
    """
