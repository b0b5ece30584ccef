"""
pytest fixtures: a small in-memory catalog shared by the engine tests.
"""
from pathlib import Path
import pytest

from herbcalc.catalog import Catalog
from herbcalc.resolver import build_catalog

SAMPLE_CATALOG = Path(__file__).resolve().parent.parent / "examples" / "catalog_herbs.yaml"

CATALOG_YAML = """
herbs:
  - {id: 1, name: 시호}
  - {id: 2, name: 황금}
  - {id: 3, name: 인삼}
  - {id: 4, name: 반하}
  - {id: 5, name: 감초}
  - {id: 6, name: 생강}
  - {id: 7, name: 대조}
  - {id: 8, name: 황련}
  - {id: 9, name: 건강}
definitions:
  - name: 소시호탕
    alias: 소시호
    category: 화해제
    composition: "시호:12/황금:8/인삼:8/반하:8/감초:4/생강:4/대조:4"
  - name: 반하사심탕
    alias: 반하사심
    source: 상한론
    composition: "반하:12/황금:6/인삼:6/감초:6/건강:6/황련:2/대조:4"
"""

@pytest.fixture
def catalog():
    return Catalog.from_yaml_text(CATALOG_YAML)

@pytest.fixture
def templates(catalog):
    return build_catalog(catalog)

@pytest.fixture
def sample_catalog():
    return Catalog.from_file(str(SAMPLE_CATALOG))
