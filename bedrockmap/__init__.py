"""Decode Minecraft Bedrock Edition chunk records and render map images from them."""

__version__ = "0.1.2"