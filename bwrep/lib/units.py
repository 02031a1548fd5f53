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
"""Static Brood War unit, tech and upgrade ids found in command payloads."""

import collections


class UnitType(collections.namedtuple("UnitType", [
    "id", "name", "supply", "building"])):
  """A unit or building type.

  `supply` is what one production command costs, so a Zergling morph (a pair
  of Zerglings) costs 1.
  """
  __slots__ = ()


def _unit(unit_id, name, supply=0):
  return UnitType(unit_id, name, supply, False)


def _building(unit_id, name):
  return UnitType(unit_id, name, 0, True)


UNIT_TYPES = [
    # Terran
    _unit(0, "Marine", 1),
    _unit(1, "Ghost", 1),
    _unit(2, "Vulture", 2),
    _unit(3, "Goliath", 2),
    _unit(5, "Siege Tank", 2),
    _unit(7, "SCV", 1),
    _unit(8, "Wraith", 2),
    _unit(9, "Science Vessel", 2),
    _unit(11, "Dropship", 2),
    _unit(12, "Battlecruiser", 6),
    _unit(13, "Spider Mine"),
    _unit(14, "Nuclear Missile"),
    _unit(32, "Firebat", 1),
    _unit(34, "Medic", 1),
    _unit(58, "Valkyrie", 3),
    # Zerg
    _unit(35, "Larva"),
    _unit(36, "Egg"),
    _unit(37, "Zergling", 1),
    _unit(38, "Hydralisk", 1),
    _unit(39, "Ultralisk", 4),
    _unit(41, "Drone", 1),
    _unit(42, "Overlord"),
    _unit(43, "Mutalisk", 2),
    _unit(44, "Guardian", 2),
    _unit(45, "Queen", 2),
    _unit(46, "Defiler", 2),
    _unit(47, "Scourge", 1),
    _unit(50, "Infested Terran", 1),
    _unit(62, "Devourer", 2),
    _unit(103, "Lurker", 2),
    # Protoss
    _unit(60, "Corsair", 2),
    _unit(61, "Dark Templar", 2),
    _unit(63, "Dark Archon", 4),
    _unit(64, "Probe", 1),
    _unit(65, "Zealot", 2),
    _unit(66, "Dragoon", 2),
    _unit(67, "High Templar", 2),
    _unit(68, "Archon", 4),
    _unit(69, "Shuttle", 2),
    _unit(70, "Scout", 3),
    _unit(71, "Arbiter", 4),
    _unit(72, "Carrier", 6),
    _unit(73, "Interceptor"),
    _unit(83, "Reaver", 4),
    _unit(84, "Observer", 1),
    _unit(85, "Scarab"),
    # Terran buildings
    _building(106, "Command Center"),
    _building(107, "Comsat Station"),
    _building(108, "Nuclear Silo"),
    _building(109, "Supply Depot"),
    _building(110, "Refinery"),
    _building(111, "Barracks"),
    _building(112, "Academy"),
    _building(113, "Factory"),
    _building(114, "Starport"),
    _building(115, "Control Tower"),
    _building(116, "Science Facility"),
    _building(117, "Covert Ops"),
    _building(118, "Physics Lab"),
    _building(120, "Machine Shop"),
    _building(122, "Engineering Bay"),
    _building(123, "Armory"),
    _building(124, "Missile Turret"),
    _building(125, "Bunker"),
    # Zerg buildings
    _building(130, "Infested Command Center"),
    _building(131, "Hatchery"),
    _building(132, "Lair"),
    _building(133, "Hive"),
    _building(134, "Nydus Canal"),
    _building(135, "Hydralisk Den"),
    _building(136, "Defiler Mound"),
    _building(137, "Greater Spire"),
    _building(138, "Queen's Nest"),
    _building(139, "Evolution Chamber"),
    _building(140, "Ultralisk Cavern"),
    _building(141, "Spire"),
    _building(142, "Spawning Pool"),
    _building(143, "Creep Colony"),
    _building(144, "Spore Colony"),
    _building(146, "Sunken Colony"),
    _building(149, "Extractor"),
    # Protoss buildings
    _building(154, "Nexus"),
    _building(155, "Robotics Facility"),
    _building(156, "Pylon"),
    _building(157, "Assimilator"),
    _building(159, "Observatory"),
    _building(160, "Gateway"),
    _building(162, "Photon Cannon"),
    _building(163, "Citadel of Adun"),
    _building(164, "Cybernetics Core"),
    _building(165, "Templar Archives"),
    _building(166, "Forge"),
    _building(167, "Stargate"),
    _building(169, "Fleet Beacon"),
    _building(170, "Arbiter Tribunal"),
    _building(171, "Robotics Support Bay"),
    _building(172, "Shield Battery"),
]

UNITS = {u.id: u for u in UNIT_TYPES}

# Extra supply when a unit morphs from another rather than from a larva.
MORPH_SUPPLY = {
    44: 0,   # Guardian from Mutalisk
    62: 0,   # Devourer from Mutalisk
    103: 1,  # Lurker from Hydralisk
}

TECHS = {
    0: "Stim Packs",
    1: "Lockdown",
    2: "EMP Shockwave",
    3: "Spider Mines",
    4: "Scanner Sweep",
    5: "Tank Siege Mode",
    6: "Defensive Matrix",
    7: "Irradiate",
    8: "Yamato Gun",
    9: "Cloaking Field",
    10: "Personnel Cloaking",
    11: "Burrowing",
    12: "Infestation",
    13: "Spawn Broodlings",
    14: "Dark Swarm",
    15: "Plague",
    16: "Consume",
    17: "Ensnare",
    18: "Parasite",
    19: "Psionic Storm",
    20: "Hallucination",
    21: "Recall",
    22: "Stasis Field",
    23: "Archon Warp",
    24: "Restoration",
    25: "Disruption Web",
    27: "Mind Control",
    28: "Dark Archon Meld",
    29: "Feedback",
    30: "Optical Flare",
    31: "Maelstrom",
    32: "Lurker Aspect",
    34: "Healing",
}

UPGRADES = {
    0: "Terran Infantry Armor",
    1: "Terran Vehicle Plating",
    2: "Terran Ship Plating",
    3: "Zerg Carapace",
    4: "Zerg Flyer Carapace",
    5: "Protoss Ground Armor",
    6: "Protoss Air Armor",
    7: "Terran Infantry Weapons",
    8: "Terran Vehicle Weapons",
    9: "Terran Ship Weapons",
    10: "Zerg Melee Attacks",
    11: "Zerg Missile Attacks",
    12: "Zerg Flyer Attacks",
    13: "Protoss Ground Weapons",
    14: "Protoss Air Weapons",
    15: "Protoss Plasma Shields",
    16: "U-238 Shells",
    17: "Ion Thrusters",
    19: "Titan Reactor",
    20: "Ocular Implants",
    21: "Moebius Reactor",
    22: "Apollo Reactor",
    23: "Colossus Reactor",
    24: "Ventral Sacs",
    25: "Antennae",
    26: "Pneumatized Carapace",
    27: "Metabolic Boost",
    28: "Adrenal Glands",
    29: "Muscular Augments",
    30: "Grooved Spines",
    31: "Gamete Meiosis",
    32: "Metasynaptic Node",
    33: "Singularity Charge",
    34: "Leg Enhancements",
    35: "Scarab Damage",
    36: "Reaver Capacity",
    37: "Gravitic Drive",
    38: "Sensor Array",
    39: "Gravitic Boosters",
    40: "Khaydarin Amulet",
    41: "Apial Sensors",
    42: "Gravitic Thrusters",
    43: "Carrier Capacity",
    44: "Khaydarin Core",
    47: "Argus Jewel",
    49: "Argus Talisman",
    51: "Caduceus Reactor",
    52: "Chitinous Plating",
    53: "Anabolic Synthesis",
    54: "Charon Boosters",
}


def unit_name(unit_id):
  unit = UNITS.get(unit_id)
  return unit.name if unit else "Unit %d" % unit_id


def tech_name(tech_id):
  return TECHS.get(tech_id, "Tech %d" % tech_id)


def upgrade_name(upgrade_id):
  return UPGRADES.get(upgrade_id, "Upgrade %d" % upgrade_id)
