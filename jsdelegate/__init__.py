"""JavaScript Package Delegator — one CLI across npm, yarn, pnpm, bun and deno."""

__version__ = "0.1.0"
