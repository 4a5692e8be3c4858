"""xamlpatch: decompile-patch-rebuild workflow for the XAML build-task DLL.

Decompiles the Windows SDK's XAML build-task assembly into an editable
source tree, records the engineer's edits as per-file patches, and replays
those patches onto fresh decompiles for other SDK versions.
"""

__version__ = "0.1.0"
