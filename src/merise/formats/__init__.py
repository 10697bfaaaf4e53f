"""
Per-level formats of the Merise micro-syntax.

- mcd: conceptual models, parser and MCD -> MLD converter
- mld: logical models, parser, type rules and MLD -> MPD converter
- mpd: physical models, parser and SQL generator
"""
