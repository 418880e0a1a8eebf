"""
go-mod-what: report the versions of dependencies declared in a go.mod file.
"""

__version__ = "1.0.0"
