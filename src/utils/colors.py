"""
ANSI Color codes for console output formatting
"""

class Colors:
    """ANSI color codes and helper methods"""
    RESET = "\033[0m"
    BOLD = "\033[1m"

    # Text Colors
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    GREY = "\033[90m"

    @classmethod
    def colorize(cls, text: str, color: str) -> str:
        """Wrap text in color codes"""
        return f"{color}{text}{cls.RESET}"

    @classmethod
    def strip(cls, text: str) -> str:
        """Remove the codes defined here from text"""
        for code in (cls.RESET, cls.BOLD, cls.RED, cls.GREEN, cls.YELLOW,
                     cls.BLUE, cls.MAGENTA, cls.CYAN, cls.GREY):
            text = text.replace(code, "")
        return text
