"""
Power Analyzer Simulator

- virtual_analyzer.py - Register memory of a simulated analyzer
- run_simulation.py - Modbus TCP server for the virtual analyzer
"""

from .virtual_analyzer import AnalyzerReadings, PhaseReadings, VirtualAnalyzer, u32_to_registers

__all__ = ["AnalyzerReadings", "PhaseReadings", "VirtualAnalyzer", "u32_to_registers"]
