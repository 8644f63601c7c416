"""
xposed-build - build orchestration for the Xposed framework.

Compiles the native parts of Xposed against several AOSP trees, collects the
results and packages them into flashable ZIP files.
"""

__version__ = "0.9.0"
