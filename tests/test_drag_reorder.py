import os
import sys
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from drag_reorder import DragReorderController, Rect
from draft import WorkoutDraft


class DragReorderTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.draft = WorkoutDraft()
        self.a = self.draft.add_entry("1", [])
        self.b = self.draft.add_entry("2", [])
        self.c = self.draft.add_entry("3", [])
        self.items = [
            (self.a, Rect(0, 40)),
            (self.b, Rect(50, 40)),
            (self.c, Rect(100, 40)),
        ]
        self.drag = DragReorderController(self.draft)

    def test_drag_first_to_end(self) -> None:
        self.assertTrue(self.drag.start(1, 20, self.items, self.a))
        self.assertEqual(self.drag.move(1, 130), 2)
        self.assertEqual(self.drag.state.top, 100)
        self.assertEqual(self.drag.preview_order(), [self.b, self.c, self.a])
        self.assertEqual(
            self.drag.layout(), [(self.b, Rect(0, 40)), (self.c, Rect(50, 40))]
        )
        self.assertEqual(self.drag.release(1), [self.b, self.c, self.a])
        self.assertEqual(self.draft.keys(), [self.b, self.c, self.a])
        self.assertFalse(self.drag.active)

    def test_drag_back_to_start(self) -> None:
        self.drag.start(1, 20, self.items, self.a)
        self.drag.move(1, 130)
        self.assertEqual(self.drag.move(1, 5), 0)
        self.assertEqual(self.drag.state.top, 0)
        self.drag.release(1)
        self.assertEqual(self.draft.keys(), [self.a, self.b, self.c])

    def test_other_pointer_ignored(self) -> None:
        self.drag.start(1, 20, self.items, self.a)
        self.assertIsNone(self.drag.move(2, 130))
        self.assertIsNone(self.drag.release(2))
        self.assertFalse(self.drag.cancel(2))
        self.assertFalse(self.drag.start(2, 70, self.items, self.b))
        self.assertTrue(self.drag.active)

    def test_cancel_keeps_order(self) -> None:
        self.drag.start(1, 70, self.items, self.b)
        self.drag.move(1, 5)
        self.assertEqual(self.drag.preview_order(), [self.b, self.a, self.c])
        self.assertTrue(self.drag.cancel(1))
        self.assertEqual(self.draft.keys(), [self.a, self.b, self.c])

    def test_single_item_not_draggable(self) -> None:
        self.assertFalse(self.drag.start(1, 20, self.items[:1], self.a))
        self.assertFalse(self.drag.start(1, 20, self.items, "missing"))
        self.assertFalse(self.drag.active)


if __name__ == "__main__":
    unittest.main()
