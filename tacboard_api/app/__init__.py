"""
Application package.

The HTTP surface lives in ``api``, persistence in ``core.db``, the
combo repository in ``services`` and the wire models in ``schemas``.
"""
