"""Game mechanics: stat derivation and dice."""
