"""templatemerge: structured merging of regenerated C# classes into hand-edited ones."""

__version__ = "0.1.0"
