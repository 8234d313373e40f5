"""DialogChat - voice and text chat with a Dialogflow agent."""

__version__ = "0.1.0"
