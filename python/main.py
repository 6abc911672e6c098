#!/usr/bin/env python3
import sys
import time
from PIL import Image

from blur import BlurConfig, apply_blur
from pixel_buffer import InvalidArgument, PixelBuffer

MODES = ['fast', 'exact']

def usage(prog):
    print(f"Usage: {prog} <input_image> <output_image> <radius> [mode] [workers]")
    print("Modes: fast (default), exact")

def main(argv=None):
    argv = sys.argv if argv is None else argv
    if len(argv) < 4 or len(argv) > 6:
        usage(argv[0])
        sys.exit(1)

    input_path = argv[1]
    output_path = argv[2]
    radius = int(argv[3])
    mode = argv[4].lower() if len(argv) > 4 else 'fast'
    num_workers = int(argv[5]) if len(argv) > 5 else None

    if mode not in MODES:
        print(f"Unknown mode: {mode}")
        print(f"Available modes: {', '.join(MODES)}")
        sys.exit(1)

    # Load image
    start_time = time.time()
    with Image.open(input_path) as img:
        buffer = PixelBuffer.from_image(img)
    load_time = time.time() - start_time
    print(f"Image loading took {load_time * 1000:.2f}ms")

    # Apply blur
    start_time = time.time()
    try:
        config = BlurConfig(num_workers=num_workers)
        apply_blur(buffer, radius, fast=(mode == 'fast'), config=config)
    except InvalidArgument as e:
        print(f"Invalid arguments: {e}")
        sys.exit(1)
    blur_time = time.time() - start_time
    print(f"{mode.capitalize()} blur took {blur_time * 1000:.2f}ms")

    # Save image
    start_time = time.time()
    buffer.to_image().save(output_path)
    save_time = time.time() - start_time
    print(f"Image saving took {save_time * 1000:.2f}ms")

    total_time = load_time + blur_time + save_time
    print(f"Total time: {total_time * 1000:.2f}ms")

if __name__ == "__main__":
    main()
