"""Working-deck handling on top of python-pptx: copy, clone, delete, save."""

from __future__ import annotations

import copy
import logging
import re
import shutil
from pathlib import Path
from typing import Dict

from pptx import Presentation
from pptx.exc import PackageNotFoundError
from pptx.opc.constants import RELATIONSHIP_TYPE as RT
from pptx.oxml.ns import qn

from .errors import ConfigError

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
_REL_ATTRS = (qn("r:embed"), qn("r:link"), qn("r:id"), qn("r:pict"))
_SKIP_RELS = {RT.SLIDE_LAYOUT, RT.NOTES_SLIDE}


def safe_filename(name: str, *, fallback: str = "deck") -> str:
    cleaned = _UNSAFE_FILENAME_CHARS.sub("-", name or "").strip().strip(".")
    return cleaned or fallback


def unique_path(folder: Path, stem: str, suffix: str = ".pptx") -> Path:
    candidate = folder / f"{stem}{suffix}"
    counter = 2
    while candidate.exists():
        candidate = folder / f"{stem} ({counter}){suffix}"
        counter += 1
    return candidate


def template_slide_count(template: Path) -> int:
    """Slide count of the template, read without writing anything."""
    if not template.is_file():
        raise ConfigError([f"Template not found or not readable: {template}"])
    try:
        return len(Presentation(str(template)).slides)
    except (PackageNotFoundError, KeyError, ValueError) as exc:
        raise ConfigError([f"Template is not a readable .pptx deck: {template} ({exc})"]) from exc


def copy_template(template: Path, output_folder: Path, display_name: str) -> Path:
    """Copy ``template`` into ``output_folder`` under a fresh name; never touches the source."""
    if not template.is_file():
        raise ConfigError([f"Template not found or not readable: {template}"])
    try:
        output_folder.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ConfigError([f"Output folder not usable: {output_folder} ({exc})"]) from exc
    target = unique_path(output_folder, safe_filename(display_name))
    shutil.copyfile(template, target)
    logger.debug("Copied template %s to %s", template, target)
    return target


class WorkingDeck:
    """The single open deck a generation run mutates; saved exactly once."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.prs = Presentation(str(self.path))
        self._saved = False

    @property
    def slides(self):
        return self.prs.slides

    def remove_slide(self, slide) -> None:
        # python-pptx has no public delete API; remove slide relationships directly.
        slide_id_list = self.prs.slides._sldIdLst  # type: ignore[attr-defined]
        for slide_id in list(slide_id_list):
            if slide_id.id == slide.slide_id:
                self.prs.part.drop_rel(slide_id.rId)
                slide_id_list.remove(slide_id)
                return
        raise ValueError(f"slide {slide.slide_id} is not part of this deck")

    def keep_only(self, keep) -> None:
        for slide in list(self.prs.slides):
            if slide.slide_id != keep.slide_id:
                self.remove_slide(slide)

    def clone_slide(self, source):
        """Append a copy of ``source`` at the end of the deck and return it."""
        new_slide = self.prs.slides.add_slide(source.slide_layout)
        tree = new_slide.shapes._spTree
        for shape in list(new_slide.shapes):
            tree.remove(shape._element)

        rid_map = self._copy_relationships(source, new_slide)

        source_cSld = source._element.find(qn("p:cSld"))
        bg = source_cSld.find(qn("p:bg")) if source_cSld is not None else None
        if bg is not None:
            new_cSld = new_slide._element.find(qn("p:cSld"))
            new_cSld.insert(0, copy.deepcopy(bg))

        for shape in source.shapes:
            element = copy.deepcopy(shape._element)
            tree.insert_element_before(element, "p:extLst")
        if bg is not None:
            self._remap_rids(new_slide._element.find(qn("p:cSld")).find(qn("p:bg")), rid_map)
        self._remap_rids(tree, rid_map)
        return new_slide

    @staticmethod
    def _copy_relationships(source, target) -> Dict[str, str]:
        rid_map: Dict[str, str] = {}
        for rel in source.part.rels.values():
            if rel.reltype in _SKIP_RELS:
                continue
            if rel.is_external:
                new_rid = target.part.relate_to(rel.target_ref, rel.reltype, is_external=True)
            else:
                new_rid = target.part.relate_to(rel.target_part, rel.reltype)
            rid_map[rel.rId] = new_rid
        return rid_map

    @staticmethod
    def _remap_rids(root, rid_map: Dict[str, str]) -> None:
        if root is None or not rid_map:
            return
        for element in root.iter():
            for attr in _REL_ATTRS:
                value = element.get(attr)
                if value is not None and value in rid_map:
                    element.set(attr, rid_map[value])

    def save(self) -> Path:
        if self._saved:
            raise RuntimeError(f"working deck {self.path} was already saved")
        self.prs.save(str(self.path))
        self._saved = True
        logger.info("Saved deck to %s", self.path)
        return self.path
