"""Simulated hardware: bending magnet and three-sensor turntable with fault injection."""