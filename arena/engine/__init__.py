"""Engine layer: arena loop, match lifecycle, effects and contacts.

Import submodules directly (``arena.engine.arena_loop``); this package
does not re-export them because the services layer depends on
``arena.engine.match``.
"""
