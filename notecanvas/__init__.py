"""NoteCanvas - an editable node tree on a pannable, zoomable canvas."""

__version__ = "1.0.0"
__app_id__ = "io.github.notecanvas.NoteCanvas"
