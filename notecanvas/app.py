"""Main NoteCanvas application."""

import logging
import sys
from typing import Optional

import gi
gi.require_version("Gtk", "4.0")
gi.require_version("Adw", "1")
gi.require_version("Gdk", "4.0")
from gi.repository import Gtk, Gio, Adw

from notecanvas import __version__, __app_id__
from notecanvas.canvas import MindMapCanvas
from notecanvas.config import Settings, load_settings
from notecanvas.editor import MindMapEditor
from notecanvas.notes import NoteListModel, NoteStoreClient
from notecanvas.sample_data import SAMPLE_TREE
from notecanvas.tree import flatten
from notecanvas.widgets import NoteListPanel

logger = logging.getLogger(__name__)


class NoteCanvasWindow(Adw.ApplicationWindow):
    """Main application window."""

    def __init__(self, app: Adw.Application, settings: Settings,
                 notes_model: NoteListModel):
        super().__init__(application=app)
        self.settings = settings
        self.notes_model = notes_model

        self.editor = MindMapEditor(flatten(SAMPLE_TREE), settings)
        self.editor.on_changed = self._on_editor_changed
        self.editor.on_message = self._show_toast
        self.notes_model.on_error = self._show_toast

        # Window setup
        self.set_title("NoteCanvas")
        self.set_default_size(1200, 800)

        self._build_ui()
        self._setup_shortcuts()
        self._sync_header()

    def _build_ui(self):
        """Build the main UI layout."""
        main_box = Gtk.Box(orientation=Gtk.Orientation.VERTICAL)
        main_box.append(self._build_header())

        self.main_paned = Gtk.Paned(orientation=Gtk.Orientation.HORIZONTAL)
        self.main_paned.set_vexpand(True)

        # Canvas
        self.canvas = MindMapCanvas(self.editor, self.settings)
        canvas_frame = Gtk.Frame()
        canvas_frame.set_child(self.canvas)
        self.main_paned.set_start_child(canvas_frame)
        self.main_paned.set_shrink_start_child(False)

        # Note list
        self.notes_panel = NoteListPanel(self.notes_model)
        self.notes_revealer = Gtk.Revealer()
        self.notes_revealer.set_transition_type(Gtk.RevealerTransitionType.SLIDE_LEFT)
        self.notes_revealer.set_reveal_child(False)
        self.notes_revealer.set_child(self.notes_panel)
        self.main_paned.set_end_child(self.notes_revealer)
        self.main_paned.set_shrink_end_child(False)
        self.main_paned.set_resize_end_child(False)

        # Wrap in toast overlay for in-app notifications
        self.toast_overlay = Adw.ToastOverlay()
        self.toast_overlay.set_child(self.main_paned)
        main_box.append(self.toast_overlay)

        self.set_content(main_box)

    def _build_header(self) -> Adw.HeaderBar:
        """Build the header bar."""
        header = Adw.HeaderBar()
        header.add_css_class("flat")

        # Menu button
        menu_btn = Gtk.MenuButton()
        menu_btn.set_icon_name("open-menu-symbolic")
        menu_btn.set_tooltip_text("Menu")

        menu = Gio.Menu()
        view_section = Gio.Menu()
        view_section.append("Expand All", "win.expand-all")
        view_section.append("Collapse All", "win.collapse-all")
        view_section.append("Reset Zoom", "win.reset-zoom")
        view_section.append("Toggle Notes", "win.toggle-notes")
        menu.append_section(None, view_section)
        help_section = Gio.Menu()
        help_section.append("About NoteCanvas", "win.show-about")
        menu.append_section(None, help_section)

        popover = Gtk.PopoverMenu()
        popover.set_menu_model(menu)
        menu_btn.set_popover(popover)
        header.pack_start(menu_btn)

        # Edit mode controls
        self.edit_btn = Gtk.Button(label="Edit Mode")
        self.edit_btn.add_css_class("suggested-action")
        self.edit_btn.connect("clicked", lambda b: self.editor.enter_edit_mode())
        header.pack_start(self.edit_btn)

        self.save_btn = Gtk.Button(label="Save")
        self.save_btn.add_css_class("suggested-action")
        self.save_btn.connect("clicked", lambda b: self.editor.save_edit())
        header.pack_start(self.save_btn)

        self.exit_btn = Gtk.Button(label="Exit")
        self.exit_btn.connect("clicked", lambda b: self.editor.exit_edit_mode())
        header.pack_start(self.exit_btn)

        # Notes toggle
        notes_btn = Gtk.ToggleButton()
        notes_btn.set_icon_name("accessories-text-editor-symbolic")
        notes_btn.set_tooltip_text("Toggle Notes (Ctrl+Shift+B)")
        notes_btn.connect("toggled", self._on_notes_toggled)
        self.notes_btn = notes_btn
        header.pack_end(notes_btn)

        # Only shown while zoomed
        self.reset_zoom_btn = Gtk.Button(label="Reset Zoom")
        self.reset_zoom_btn.add_css_class("flat")
        self.reset_zoom_btn.connect("clicked", lambda b: self.editor.reset_zoom())
        header.pack_end(self.reset_zoom_btn)

        return header

    def _setup_shortcuts(self):
        """Setup keyboard shortcuts."""
        actions = [
            ("expand-all", self.editor.expand_all, None),
            ("collapse-all", self.editor.collapse_all, None),
            ("reset-zoom", self.editor.reset_zoom, "<Control>0"),
            ("toggle-notes", self._toggle_notes, "<Control><Shift>b"),
            ("edit-mode", self.editor.enter_edit_mode, "<Control>e"),
            ("save", self.editor.save_edit, "<Control>s"),
            ("show-about", self._show_about, None),
            ("quit", lambda: self.close(), "<Control>q"),
        ]

        for name, callback, accel in actions:
            action = Gio.SimpleAction.new(name, None)
            action.connect("activate", lambda a, p, cb=callback: cb())
            self.add_action(action)

            if accel:
                self.get_application().set_accels_for_action(f"win.{name}", [accel])

    # ==================== Event Handlers ====================

    def _on_editor_changed(self):
        self._sync_header()
        self.canvas.queue_draw()

    def _sync_header(self):
        """Show the buttons that fit the current mode and zoom."""
        editing = self.editor.edit_mode
        self.edit_btn.set_visible(not editing)
        self.save_btn.set_visible(editing)
        self.exit_btn.set_visible(editing)
        self.reset_zoom_btn.set_visible(self.editor.viewport.zoom != 1)

    def _on_notes_toggled(self, button):
        revealed = button.get_active()
        self.notes_revealer.set_reveal_child(revealed)
        if revealed:
            self.notes_model.refresh()

    def _toggle_notes(self):
        self.notes_btn.set_active(not self.notes_btn.get_active())

    def _show_about(self):
        about = Adw.AboutWindow(
            transient_for=self,
            application_name="NoteCanvas",
            application_icon="accessories-text-editor-symbolic",
            version=__version__,
            comments="Edit a tree of notes on a pannable, zoomable canvas.",
            license_type=Gtk.License.MIT_X11,
        )
        about.present()

    def _show_toast(self, message: str):
        """Show a toast notification."""
        toast = Adw.Toast(title=message)
        toast.set_timeout(3)
        self.toast_overlay.add_toast(toast)


class NoteCanvasApp(Adw.Application):
    """Main application class."""

    def __init__(self, settings: Optional[Settings] = None):
        super().__init__(
            application_id=__app_id__,
            flags=Gio.ApplicationFlags.DEFAULT_FLAGS
        )
        self.settings = settings or load_settings()
        self.note_client: Optional[NoteStoreClient] = None
        self.window: Optional[NoteCanvasWindow] = None

    def do_startup(self):
        """Initialize application."""
        Adw.Application.do_startup(self)

        self.note_client = NoteStoreClient(
            self.settings.api_base_url, timeout=self.settings.request_timeout
        )

        style_manager = Adw.StyleManager.get_default()
        style_manager.set_color_scheme(Adw.ColorScheme.FORCE_DARK)

    def do_activate(self):
        """Activate application."""
        if not self.window:
            self.window = NoteCanvasWindow(
                self, self.settings, NoteListModel(self.note_client)
            )
        self.window.present()

    def do_shutdown(self):
        """Shutdown application."""
        if self.window:
            self.window.canvas.dispatcher.teardown()
        if self.note_client:
            self.note_client.close()

        Adw.Application.do_shutdown(self)


def main(settings: Optional[Settings] = None) -> int:
    """Application entry point."""
    app = NoteCanvasApp(settings)
    logger.info("Starting NoteCanvas %s against %s", __version__, app.settings.api_base_url)
    return app.run(sys.argv)


if __name__ == "__main__":
    sys.exit(main())
