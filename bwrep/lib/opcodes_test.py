# Copyright 2021 DeepMind Technologies Ltd. All rights reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#      http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS-IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Tests for the opcode and unit tables."""

from absl.testing import absltest
from absl.testing import parameterized

from bwrep.lib import opcodes
from bwrep.lib import units


class OpcodesTest(parameterized.TestCase):

  def test_table_keyed_by_id(self):
    for op_id, op in opcodes.OPCODES.items():
      self.assertEqual(op_id, op.id)
      self.assertTrue(callable(op.length))

  @parameterized.parameters(
      (opcodes.BUILD, 7),
      (opcodes.TRAIN, 2),
      (opcodes.RIGHT_CLICK, 9),
      (opcodes.RIGHT_CLICK_121, 11),
      (opcodes.SYNC, 6),
  )
  def test_fixed_lengths(self, op_id, size):
    op = opcodes.OPCODES[op_id]
    self.assertEqual(op.length(b"", 0, 0), size)
    self.assertEqual(op.length.size, size)

  @parameterized.parameters((opcodes.SELECT, 2), (opcodes.SELECT_121, 4))
  def test_selection_lengths(self, op_id, tag_size):
    rule = opcodes.OPCODES[op_id].length
    self.assertIsNone(rule.size)
    self.assertEqual(rule(bytes([3]) + b"\0" * 12, 0, 13), 1 + 3 * tag_size)
    with self.assertRaises(opcodes.PayloadTruncated):
      rule(b"", 0, 0)

  def test_save_name(self):
    payload = b"\1\0\0\0game.rep\0trailing"
    self.assertEqual(opcodes.save_name(payload, 0, len(payload)), 13)
    with self.assertRaises(opcodes.PayloadTruncated):
      opcodes.save_name(b"\1\0\0\0noterm", 0, 10)

  def test_flags(self):
    self.assertIn(opcodes.BUILD, opcodes.MEANINGFUL)
    self.assertNotIn(opcodes.SELECT, opcodes.MEANINGFUL)
    self.assertNotIn(opcodes.HOTKEY, opcodes.MEANINGFUL)
    self.assertTrue(opcodes.OPCODES[opcodes.SYNC].skip)
    self.assertTrue(opcodes.OPCODES[opcodes.CHAT].sender_in_payload)

  def test_names(self):
    self.assertEqual(opcodes.opcode_name(opcodes.BUILD), "Build")
    self.assertEqual(opcodes.opcode_name(0xFE), "Unknown 0xfe")

  @parameterized.parameters(
      (opcodes.BUILD, opcodes.ActionCategory.MACRO),
      (opcodes.HOTKEY, opcodes.ActionCategory.MACRO),
      (opcodes.TECH, opcodes.ActionCategory.MACRO),
      (opcodes.RIGHT_CLICK_121, opcodes.ActionCategory.MICRO),
      (0x2B, opcodes.ActionCategory.MICRO),  # Hold Position
      (opcodes.SELECT, opcodes.ActionCategory.OTHER),
      (opcodes.CHAT, opcodes.ActionCategory.OTHER),
      (0xFE, opcodes.ActionCategory.OTHER),
  )
  def test_category(self, op_id, expected):
    self.assertEqual(opcodes.category(op_id), expected)

  def test_categories_are_known_opcodes(self):
    for op_id in opcodes.CATEGORIES:
      self.assertIn(op_id, opcodes.OPCODES)


class UnitsTest(absltest.TestCase):

  def test_unit_names(self):
    self.assertEqual(units.unit_name(7), "SCV")
    self.assertEqual(units.unit_name(109), "Supply Depot")
    self.assertEqual(units.unit_name(999), "Unit 999")

  def test_supply(self):
    self.assertEqual(units.UNITS[0].supply, 1)
    self.assertEqual(units.UNITS[103].supply, 2)
    self.assertTrue(units.UNITS[109].building)
    self.assertEqual(units.MORPH_SUPPLY[103], 1)

  def test_tech_and_upgrade_names(self):
    self.assertEqual(units.tech_name(0), "Stim Packs")
    self.assertEqual(units.tech_name(200), "Tech 200")
    self.assertEqual(units.upgrade_name(200), "Upgrade 200")


if __name__ == "__main__":
  absltest.main()
