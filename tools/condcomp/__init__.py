"""#if/#elif/#else/#end conditional compilation over a compiler token stream."""
