# category_tree.py - شجرة الفئات (فئات رئيسية وفرعية بدون حد للعمق)

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

INDENT = '  '
BRANCH = '└ '


class CategoryCycleError(ValueError):
    """سلسلة parent_id تعود إلى فئة تم وضعها مسبقاً في الشجرة"""

    def __init__(self, category_ids):
        self.category_ids = list(category_ids)
        super().__init__(f"Category cycle detected: {' -> '.join(str(i) for i in self.category_ids)}")


@dataclass
class CategoryNode:
    id: Any
    name: str
    parent_id: Any = None
    image: Optional[str] = None
    level: int = 0
    children: List['CategoryNode'] = field(default_factory=list)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'parent_id': self.parent_id,
            'image': self.image,
            'level': self.level,
            'children': [child.to_dict() for child in self.children],
        }


def _get(record, name, default=None):
    if isinstance(record, dict):
        return record.get(name, default)
    return getattr(record, name, default)


def _index(records):
    """فهرسة السجلات حسب المعرف مع الحفاظ على ترتيبها"""
    by_id = {}
    children_of: Dict[Any, list] = {}
    for record in records:
        cat_id = _get(record, 'id')
        if cat_id in by_id:
            continue
        by_id[cat_id] = record
        children_of.setdefault(_get(record, 'parent_id'), []).append(cat_id)
    return by_id, children_of


def build_tree(records, parent_id=None) -> List[CategoryNode]:
    """بناء الشجرة من قائمة مسطحة ابتداءً من parent_id (None للجذور)"""
    by_id, children_of = _index(records)
    placed: Set[Any] = set()

    def attach(current_parent, level, path):
        nodes = []
        for cat_id in children_of.get(current_parent, []):
            if cat_id in placed:
                raise CategoryCycleError(path + [cat_id])
            placed.add(cat_id)
            record = by_id[cat_id]
            node = CategoryNode(
                id=cat_id,
                name=_get(record, 'name'),
                parent_id=_get(record, 'parent_id'),
                image=_get(record, 'image'),
                level=level,
            )
            node.children = attach(cat_id, level + 1, path + [cat_id])
            nodes.append(node)
        return nodes

    if parent_id is not None:
        placed.add(parent_id)
    return attach(parent_id, 0, [parent_id] if parent_id is not None else [])


def find_orphans(records):
    """السجلات التي يشير parent_id فيها إلى فئة غير موجودة"""
    by_id, _ = _index(records)
    return [
        record for record in by_id.values()
        if _get(record, 'parent_id') is not None and _get(record, 'parent_id') not in by_id
    ]


def find_cycles(records):
    """قائمة بالحلقات الموجودة في سلاسل parent_id (كل حلقة قائمة معرفات)"""
    by_id, _ = _index(records)
    cycles = []
    seen: Set[Any] = set()
    for start in by_id:
        if start in seen:
            continue
        chain = []
        position = {}
        current = start
        while current in by_id and current not in seen:
            position[current] = len(chain)
            chain.append(current)
            seen.add(current)
            current = _get(by_id[current], 'parent_id')
            if current in position:
                cycles.append(chain[position[current]:])
                break
    return cycles


def integrity_report(records):
    return {
        'orphans': [_get(record, 'id') for record in find_orphans(records)],
        'cycles': find_cycles(records),
    }


def _find(tree, predicate) -> Optional[CategoryNode]:
    for node in tree:
        if predicate(node):
            return node
        found = _find(node.children, predicate)
        if found is not None:
            return found
    return None


def _walk(node):
    yield node
    for child in node.children:
        yield from _walk(child)


def names_in_scope(tree, target_name) -> Set[str]:
    """اسم الفئة وأسماء جميع الفئات المتفرعة منها"""
    if not target_name:
        return set()
    node = _find(tree, lambda n: n.name == target_name)
    if node is None:
        return set()
    return {n.name for n in _walk(node)}


def ids_in_scope(tree, target_id) -> list:
    node = _find(tree, lambda n: n.id == target_id)
    if node is None:
        return []
    return [n.id for n in _walk(node)]


def flatten_indented(tree) -> List[dict]:
    """ترتيب مسطح (الأب ثم أبناؤه) مع مستوى العمق لقوائم الاختيار"""
    options = []

    def visit(nodes, level):
        for node in nodes:
            options.append({'id': node.id, 'name': node.name, 'level': level})
            visit(node.children, level + 1)

    visit(tree, 0)
    return options


def indented_label(option):
    level = option['level']
    return f"{INDENT * level}{BRANCH if level > 0 else ''}{option['name']}"


def would_create_cycle(records, category_id, new_parent_id) -> bool:
    """هل يؤدي نقل الفئة تحت new_parent_id إلى حلقة؟"""
    if new_parent_id is None:
        return False
    by_id, _ = _index(records)
    current = new_parent_id
    visited = set()
    while current is not None and current not in visited:
        if current == category_id:
            return True
        visited.add(current)
        record = by_id.get(current)
        current = _get(record, 'parent_id') if record is not None else None
    return False
