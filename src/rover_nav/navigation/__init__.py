"""
Navigation Module
=================

Route steps, simulated pose, progress tracking and the step coordinator.
"""
