import sys
import os

# Add project root to path
sys.path.append(os.getcwd())

try:
    from tests.test_root import test_linear_root_inside_bounds
    print("Running test_linear_root_inside_bounds...", end=" ")
    test_linear_root_inside_bounds()
    print("PASS")
except Exception as e:
    print(f"FAIL: {e}")
    sys.exit(1)

try:
    from tests.test_boxdescent import test_bowl_converges_to_center
    print("Running test_bowl_converges_to_center...", end=" ")
    test_bowl_converges_to_center()
    print("PASS")
except Exception as e:
    print(f"FAIL: {e}")
    sys.exit(1)

try:
    from tests.test_scheduler import test_separable_targets_recovered
    print("Running test_separable_targets_recovered...", end=" ")
    test_separable_targets_recovered()
    print("PASS")
except Exception as e:
    print(f"FAIL: {e}")
    sys.exit(1)

print("\nAll tests passed!")
