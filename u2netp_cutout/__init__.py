"""
u2netp background removal core.

Exposes reusable primitives for encoding images into the model's input
tensor, decoding its mask back onto the original image, and running the two
around an external inference engine.
"""
