"""
File hashing for duplicate detection

Exact duplicates are found by SHA-256 of the raw bytes, visually similar
images by an 8x8 average hash compared with Hamming distance.
"""
import hashlib
import io

from PIL import Image


def compute_file_hash(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def compute_perceptual_hash(data: bytes) -> str:
    """Average hash: 64 bits rendered as 16 hex characters"""
    with Image.open(io.BytesIO(data)) as img:
        small = img.convert("RGB").resize((8, 8), Image.Resampling.LANCZOS)
        pixels = list(small.getdata())

    grays = [0.299 * r + 0.587 * g + 0.114 * b for r, g, b in pixels]
    mean = sum(grays) / len(grays)

    bits = "".join("1" if gray >= mean else "0" for gray in grays)
    return "".join(f"{int(bits[i:i + 4], 2):x}" for i in range(0, len(bits), 4))


def hamming_distance(hash_a: str, hash_b: str) -> int:
    """Count differing bits between two hex hashes of equal length"""
    if len(hash_a) != len(hash_b):
        raise ValueError("Hashes must be the same length")

    distance = 0
    for char_a, char_b in zip(hash_a, hash_b):
        distance += bin(int(char_a, 16) ^ int(char_b, 16)).count("1")
    return distance


def calculate_similarity(hash_a: str, hash_b: str) -> int:
    """Similarity percentage (0-100) between two perceptual hashes"""
    max_distance = len(hash_a) * 4
    if max_distance == 0:
        return 100 if hash_a == hash_b else 0
    distance = hamming_distance(hash_a, hash_b)
    return round((max_distance - distance) / max_distance * 100)
