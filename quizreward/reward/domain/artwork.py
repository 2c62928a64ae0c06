import base64
import binascii
import xml.etree.ElementTree as ET

from quizreward.config import RewardConfig
from quizreward.reward.domain.errors import ValidationError, ValidationReason

SVG_TEMPLATE = (
    '<svg width="{width}" height="{height}" xmlns="{ns}">'
    '<circle cx="{cx}" cy="{cy}" r="{r}" fill="{fill}" />'
    "</svg>"
)


class ArtworkGenerator:
    """
    Deterministic badge renderer.

    The canvas and circle geometry are fixed; only the fill colour varies,
    cycling through the configured palette so that identifier 1 renders the
    base (red) badge. Output depends on nothing but the identifier.
    """

    def __init__(
        self,
        palette: list[str] | None = None,
        prefix: str = RewardConfig.DATA_URI_PREFIX,
    ) -> None:
        self.palette = list(palette) if palette else list(RewardConfig.PALETTE)
        self.prefix = prefix

    @staticmethod
    def check_identifier(token_id: object) -> int:
        # bool is an int subclass but never a valid identifier
        if isinstance(token_id, bool) or not isinstance(token_id, int):
            raise ValidationError(
                ValidationReason.INVALID_IDENTIFIER,
                f"identifier must be an unsigned integer, got {token_id!r}",
            )
        if token_id < 0 or token_id > RewardConfig.MAX_IDENTIFIER:
            raise ValidationError(
                ValidationReason.INVALID_IDENTIFIER,
                f"identifier {token_id} outside 0..2**256-1",
            )
        return token_id

    def fill_for(self, token_id: int) -> str:
        token_id = self.check_identifier(token_id)
        return self.palette[(token_id - RewardConfig.FIRST_IDENTIFIER) % len(self.palette)]

    def markup(self, token_id: int) -> str:
        """Canonical SVG document for an identifier."""
        return SVG_TEMPLATE.format(
            width=RewardConfig.CANVAS_WIDTH,
            height=RewardConfig.CANVAS_HEIGHT,
            ns=RewardConfig.SVG_NAMESPACE,
            cx=RewardConfig.CIRCLE_CX,
            cy=RewardConfig.CIRCLE_CY,
            r=RewardConfig.CIRCLE_RADIUS,
            fill=self.fill_for(token_id),
        )

    def render(self, token_id: int) -> str:
        encoded = base64.b64encode(self.markup(token_id).encode("utf-8")).decode("ascii")
        return f"{self.prefix}{encoded}"

    def decode(self, data_uri: str) -> str:
        """Strips the data URI prefix and returns the raw markup."""
        if not isinstance(data_uri, str) or not data_uri.startswith(self.prefix):
            raise ValidationError(
                ValidationReason.INVALID_ARTWORK,
                f"artwork must start with '{self.prefix}'",
            )
        try:
            raw = base64.b64decode(data_uri[len(self.prefix):], validate=True)
            return raw.decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            raise ValidationError(
                ValidationReason.INVALID_ARTWORK, f"undecodable payload: {e}"
            ) from e

    def validate(self, data_uri: str) -> str:
        """
        Accepts any well-formed SVG data URI.
        Returns the payload unchanged so it can be stored as given.
        """
        markup = self.decode(data_uri)
        try:
            root = ET.fromstring(markup)
        except ET.ParseError as e:
            raise ValidationError(
                ValidationReason.INVALID_ARTWORK, f"malformed markup: {e}"
            ) from e

        if root.tag not in ("svg", f"{{{RewardConfig.SVG_NAMESPACE}}}svg"):
            raise ValidationError(
                ValidationReason.INVALID_ARTWORK, f"root element is <{root.tag}>"
            )
        return data_uri
