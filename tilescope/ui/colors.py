"""Theme colors for the level picker."""


class PickerColors:
    """Light theme palette for the picker window and preview cards."""

    BG_TOP = "#e0f7fa"
    BG_BOTTOM = "#80deea"

    PRIMARY = "#00838f"
    PRIMARY_LIGHT = "#4fb3bf"
    PRIMARY_DARK = "#005662"

    CARD_BG = "rgba(255, 255, 255, 0.85)"
    CARD_BORDER = "rgba(255, 255, 255, 0.6)"
    CARD_SELECTED = "#ffb74d"
    # CARD_SELECTED darkened by 35%, for the name under a selected card.
    CARD_SELECTED_TEXT = "#a57632"

    TEXT_PRIMARY = "#1a3a3a"
    TEXT_SECONDARY = "#4a6572"
    TEXT_MUTED = "#78909c"

    # Backdrop behind thumbnails; transparent pixels of a preview show it.
    PREVIEW_BG = "#1a3a3a"
