"""
streamlights - Twitch EventSub driven lamp controller.
"""

__version__ = "0.1.0"
__logo__ = "💡"
