"""Per-pass state shared by the handlers of one fill pass."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .answer_providers import AnswerProvider
from .field_filler import FieldFiller
from .input_simulator import InputSimulator
from .models import AIAnswer
from .profile import Profile
from .site_profiles import SiteProfile


@dataclass
class FillSession:
    """
    Everything a fill pass needs, built fresh for each pass so independent
    passes never share mutable state.

    ``page`` is the top-level page; ``frame`` is where the form lives and
    defaults to the page itself.
    """
    page: Any
    profile: Profile
    site: SiteProfile
    simulator: InputSimulator
    filler: FieldFiller
    frame: Any = None
    answer_provider: Optional[AnswerProvider] = None
    answer_overrides: Optional[List[AIAnswer]] = None
    config: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def create(cls, page: Any, profile: Profile, site: SiteProfile,
               frame: Any = None,
               answer_provider: Optional[AnswerProvider] = None,
               answer_overrides: Optional[List[AIAnswer]] = None,
               config: Optional[Dict[str, Any]] = None) -> 'FillSession':
        simulator = InputSimulator(site, config)
        return cls(
            page=page,
            profile=profile,
            site=site,
            simulator=simulator,
            filler=FieldFiller(simulator),
            frame=frame,
            answer_provider=answer_provider,
            answer_overrides=answer_overrides,
            config=config or {},
        )

    @property
    def form_root(self) -> Any:
        return self.frame if self.frame is not None else self.page

    def take_overrides(self) -> Optional[List[AIAnswer]]:
        """Pre-supplied answers are replayed once, then dropped."""
        overrides, self.answer_overrides = self.answer_overrides, None
        return overrides
