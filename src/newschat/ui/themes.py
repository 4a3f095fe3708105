"""Theme definitions for the TUI.

This module hides the design decisions about:
- Color palettes and visual appearance
- Theme variables (borders, scrollbars, etc.)

To add a new theme, define it here and register in the app.
"""

from textual.theme import Theme

# Dark terminal palette; green/red carry bullish/bearish meaning elsewhere
NEWSROOM_DARK = Theme(
    name="newsroom-dark",
    primary="#7aa2f7",      # Blue - main accent, citations
    secondary="#bb9af7",    # Purple - assistant messages
    accent="#e0af68",       # Amber - highlights
    foreground="#c0caf5",   # Light text
    background="#16161e",   # Deepest background
    success="#9ece6a",      # Green - user messages, bullish
    warning="#ff9e64",      # Orange - warnings, log panel
    error="#f7768e",        # Red - errors, bearish
    surface="#1a1b26",      # Main surface
    panel="#1f2335",        # Panel backgrounds
    dark=True,
    variables={
        "block-cursor-foreground": "#16161e",
        "block-cursor-background": "#7aa2f7",
        "block-cursor-text-style": "bold",
        "input-cursor-background": "#c0caf5",
        "input-cursor-foreground": "#16161e",
        "input-selection-background": "#7aa2f7 30%",
        "scrollbar": "#292e42",
        "scrollbar-hover": "#3b4261",
        "scrollbar-active": "#7aa2f7",
        "footer-key-foreground": "#7aa2f7",
        "footer-description-foreground": "#a9b1d6",
    },
)
