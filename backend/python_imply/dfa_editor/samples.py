"""Sample DFA documents shipped with the editor."""

from pathlib import Path
from typing import Dict, List, NamedTuple

from .models import Dfa
from .serializer import from_json

SAMPLES_DIR = Path(__file__).parent / "samples"


class Sample(NamedTuple):
    name: str
    app_name: str
    app_package: str

    @property
    def path(self) -> Path:
        return SAMPLES_DIR / f"{self.name}.json"

    def read_text(self) -> str:
        return self.path.read_text(encoding="utf-8")

    def load(self) -> Dfa:
        return from_json(self.read_text())


SAMPLES: Dict[str, Sample] = {
    s.name: s
    for s in (
        Sample("beverageVending", "BeverageVending", "samples.beveragevending"),
        Sample("decimalNumbersCheck", "DecimalNumbersCheck", "samples.decimalnumbers"),
        Sample("evenZerosCheck", "EvenZerosCheck", "samples.evenzeros"),
    )
}


def sample_names() -> List[str]:
    return sorted(SAMPLES)


def get_sample(name: str) -> Sample:
    try:
        return SAMPLES[name]
    except KeyError:
        raise KeyError(f"Unknown sample DFA '{name}'. Available: {', '.join(sample_names())}") from None
