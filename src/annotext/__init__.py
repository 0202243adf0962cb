"""annotext - comment attribution and tagged-annotation extraction.

Finds the comments that document a call expression or declaration, parses the
translator tags (``//:``, ``//=``, ``//~``, ``//%``) inside them, and builds
catalog-ready annotation records.  A second front-end attaches ``/*! ... */``
documentation comments to declarative (QML) declarations.
"""

__version__ = "0.1.0"
