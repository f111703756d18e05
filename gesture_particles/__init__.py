# Gesture Particles - Hand-Controlled Particle Shapes
# Version: 1.0.0

"""
Core modules for the gesture-controlled particle system:
- shapes: Target point sets for the nine shape families
- simulation: Particle swarm integrator
- hand_tracking: MediaPipe hand landmark detection
- gesture_logic: Landmark to gesture classification
- controls: Gesture to smoothed control signals
- landmark_stream: Background tracking thread
- config / presets: Configuration and built-in presets
- renderer: OpenCV point cloud preview
- ui: Main application interface
"""

__version__ = "1.0.0"
