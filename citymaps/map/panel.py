"""
citymaps/map/panel.py

Detail panel showing statistics for the hovered or selected region.
"""

from __future__ import annotations

from citymaps.config import UITexts
from citymaps.domain.interaction import PanelContent
from citymaps.domain.statistics import RegionStat

EMPTY = "empty"
STAT = "stat"
UNAVAILABLE = "unavailable"


def format_number_de(value: float, max_fraction_digits: int = 0) -> str:
    """
    Format with German digit grouping ("1.234,5"), trimming trailing zeros.
    """

    text = f"{value:,.{max_fraction_digits}f}"
    if max_fraction_digits:
        text = text.rstrip("0").rstrip(".")
    return text.replace(",", "\x00").replace(".", ",").replace("\x00", ".")


class DetailPanel:
    """
    Panel with a fixed open/close/toggle/update capability.
    """

    def __init__(self, ui: UITexts | None = None) -> None:
        self._ui = ui or UITexts()
        self._visible = False
        self._title = self._ui.region_select_prompt
        self._chips: tuple[tuple[str, str], ...] = ()
        self._notes = self._ui.region_select_hint
        self._state = EMPTY
        self._region_id: str | None = None

    @property
    def visible(self) -> bool:
        return self._visible

    @property
    def content(self) -> PanelContent:
        return PanelContent(
            visible=self._visible,
            title=self._title,
            state=self._state,
            chips=self._chips,
            notes=self._notes,
            footer=self._ui.data_source,
            region_id=self._region_id,
        )

    @property
    def city_name(self) -> str:
        return self._ui.title.split(" ")[0] or "City"

    def open(self) -> None:
        self._visible = True

    def close(self) -> None:
        self._visible = False

    def toggle(self) -> None:
        if self._visible:
            self.close()
        else:
            self.open()

    def update(self, stat: RegionStat | None, *, region_id: str | None = None) -> None:
        """
        Show `stat`, or the prompt state when it is missing or unnamed.
        """

        self._region_id = region_id
        if stat is None or not stat.name:
            self._show_empty_state()
            return

        self._state = STAT
        self._title = f"{self.city_name} – {stat.name}"
        self._chips = (
            ("Fläche:", f"{format_number_de(stat.area, 1)} km²"),
            ("Einwohner:", format_number_de(stat.population)),
            ("Werbeträger:", format_number_de(stat.derived_count)),
        )
        self._notes = stat.notes

    def show_unavailable(self, *, region_id: str | None = None) -> None:
        self._region_id = region_id
        self._state = UNAVAILABLE
        self._title = self._ui.region_select_prompt
        self._chips = ()
        self._notes = self._ui.stats_unavailable_text

    def _show_empty_state(self) -> None:
        self._state = EMPTY
        self._title = self._ui.region_select_prompt
        self._chips = ()
        self._notes = self._ui.region_select_hint
