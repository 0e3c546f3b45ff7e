"""Custom widgets and dialogs for NoteCanvas."""

from typing import Callable, List, Optional

import gi

gi.require_version("Gtk", "4.0")
gi.require_version("Adw", "1")
from gi.repository import Gtk, Adw, Pango

from notecanvas.notes import NoteItem, NoteListModel


def prompt_text(parent: Optional[Gtk.Window], heading: str, body: str,
                initial: str, confirm_label: str,
                on_confirm: Callable[[str], object]):
    """Modal dialog with a single text entry."""
    dialog = Adw.MessageDialog(
        transient_for=parent,
        heading=heading,
        body=body,
    )

    entry = Gtk.Entry()
    entry.set_text(initial)
    entry.set_margin_start(16)
    entry.set_margin_end(16)
    dialog.set_extra_child(entry)

    dialog.add_response("cancel", "Cancel")
    dialog.add_response("confirm", confirm_label)
    dialog.set_response_appearance("confirm", Adw.ResponseAppearance.SUGGESTED)
    dialog.set_default_response("confirm")

    def _on_response(d, response):
        if response == "confirm":
            on_confirm(entry.get_text())

    dialog.connect("response", _on_response)
    entry.connect("activate", lambda e: dialog.response("confirm"))
    dialog.present()
    entry.grab_focus()


def confirm_action(parent: Optional[Gtk.Window], heading: str, body: str,
                   confirm_label: str, on_confirm: Callable[[], object],
                   destructive: bool = False):
    """Modal yes/no dialog."""
    dialog = Adw.MessageDialog(
        transient_for=parent,
        heading=heading,
        body=body,
    )
    dialog.add_response("cancel", "Cancel")
    dialog.add_response("confirm", confirm_label)
    if destructive:
        dialog.set_response_appearance("confirm", Adw.ResponseAppearance.DESTRUCTIVE)
    dialog.set_default_response("cancel")
    dialog.connect("response", lambda d, r: on_confirm() if r == "confirm" else None)
    dialog.present()


class NoteListRow(Gtk.Box):
    """A row in the note list: title plus edit and delete buttons."""

    def __init__(self, note: NoteItem,
                 on_edit: Callable[[NoteItem], None],
                 on_delete: Callable[[NoteItem], None]):
        super().__init__(orientation=Gtk.Orientation.HORIZONTAL, spacing=8)
        self.note = note

        self.set_margin_start(12)
        self.set_margin_end(12)
        self.set_margin_top(8)
        self.set_margin_bottom(8)

        self.title_label = Gtk.Label(label=note.title)
        self.title_label.set_halign(Gtk.Align.START)
        self.title_label.set_hexpand(True)
        self.title_label.set_ellipsize(Pango.EllipsizeMode.END)
        self.append(self.title_label)

        edit_btn = Gtk.Button(label="Edit")
        edit_btn.add_css_class("flat")
        edit_btn.connect("clicked", lambda b: on_edit(self.note))
        self.append(edit_btn)

        delete_btn = Gtk.Button(label="Delete")
        delete_btn.add_css_class("destructive-action")
        delete_btn.connect("clicked", lambda b: on_delete(self.note))
        self.append(delete_btn)


class NoteListPanel(Gtk.Box):
    """Sidebar listing the notes of the remote store."""

    def __init__(self, model: NoteListModel):
        super().__init__(orientation=Gtk.Orientation.VERTICAL)
        self.model = model
        model.on_changed = self._on_notes_changed

        self.set_size_request(300, -1)

        # Header
        header = Gtk.Box(orientation=Gtk.Orientation.HORIZONTAL, spacing=8)
        header.set_margin_start(16)
        header.set_margin_end(8)
        header.set_margin_top(12)
        header.set_margin_bottom(12)

        title = Gtk.Label(label="NOTES")
        title.set_hexpand(True)
        title.set_halign(Gtk.Align.START)
        header.append(title)

        refresh_btn = Gtk.Button()
        refresh_btn.set_icon_name("view-refresh-symbolic")
        refresh_btn.set_tooltip_text("Reload Notes")
        refresh_btn.add_css_class("flat")
        refresh_btn.connect("clicked", lambda b: self.model.refresh())
        header.append(refresh_btn)

        new_btn = Gtk.Button()
        new_btn.set_icon_name("list-add-symbolic")
        new_btn.set_tooltip_text("New Note")
        new_btn.add_css_class("flat")
        new_btn.connect("clicked", self._on_new_clicked)
        header.append(new_btn)

        self.append(header)
        self.append(Gtk.Separator(orientation=Gtk.Orientation.HORIZONTAL))

        scrolled = Gtk.ScrolledWindow()
        scrolled.set_vexpand(True)
        scrolled.set_policy(Gtk.PolicyType.NEVER, Gtk.PolicyType.AUTOMATIC)

        self.listbox = Gtk.ListBox()
        self.listbox.set_selection_mode(Gtk.SelectionMode.NONE)
        scrolled.set_child(self.listbox)
        self.append(scrolled)

    def _on_notes_changed(self, notes: List[NoteItem]):
        """Rebuild the rows from the model."""
        while True:
            row = self.listbox.get_row_at_index(0)
            if row is None:
                break
            self.listbox.remove(row)

        for note in notes:
            self.listbox.append(NoteListRow(note, self._on_edit, self._on_delete))

        if not notes:
            empty = Gtk.Label(label="No notes yet")
            empty.add_css_class("dim-label")
            empty.set_margin_top(24)
            self.listbox.append(empty)

    def _on_new_clicked(self, button):
        prompt_text(
            self.get_root(),
            heading="New Note",
            body="Title:",
            initial="",
            confirm_label="Confirm",
            on_confirm=self.model.add,
        )

    def _on_edit(self, note: NoteItem):
        prompt_text(
            self.get_root(),
            heading="Edit Note",
            body="New title:",
            initial=note.title,
            confirm_label="Confirm",
            on_confirm=lambda title: self.model.edit(note, title),
        )

    def _on_delete(self, note: NoteItem):
        confirm_action(
            self.get_root(),
            heading="Delete Note?",
            body=f"Are you sure you want to delete \"{note.title}\"?",
            confirm_label="Delete",
            on_confirm=lambda: self.model.delete(note),
            destructive=True,
        )
