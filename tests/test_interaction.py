import math

import numpy as np
import pytest

from chaos_pendulum.interaction import (
    InteractionController, InteractionMode, OrthographicCamera,
    PerspectiveCamera, Ray, RodHitTester, drag_angle, intersect_z_plane,
    ray_segment_distance,
)
from chaos_pendulum.params import SimulationParameters, SimulationState
from chaos_pendulum.pose import attachment_point, compute_pose

# --- Fixtures ---


@pytest.fixture
def params():
    return SimulationParameters()


@pytest.fixture
def camera():
    return OrthographicCamera(-3.0, 3.0, -2.0, 4.0)


@pytest.fixture
def state():
    """Rod 1 hanging straight down, rod 2 sticking out to the right."""
    return SimulationState(0.0, math.pi / 2, 0.0, 0.0)


@pytest.fixture
def controller():
    c = InteractionController(InteractionMode.POSITION_FIX)
    with c.session():
        yield c


def ndc(camera, x, y):
    return (
        (x - camera.left) / (camera.right - camera.left) * 2 - 1,
        (y - camera.bottom) / (camera.top - camera.bottom) * 2 - 1,
    )


class ParallelCamera:
    """A camera whose rays never meet the z=0 plane."""

    def ray(self, ndc):
        return Ray(np.array([0.0, 0.0, 1.0]), np.array([1.0, 0.0, 0.0]))


# --- Rays ---


def test_orthographic_ray_hits_mapped_point(camera):
    assert intersect_z_plane(camera.ray((0.0, 0.0))) == pytest.approx((0.0, 1.0))
    assert intersect_z_plane(camera.ray((1.0, -1.0))) == pytest.approx((3.0, -2.0))


def test_perspective_centre_ray_hits_target():
    cam = PerspectiveCamera(position=(0.0, 1.0, 5.0), target=(0.5, 1.0, 0.0))
    assert intersect_z_plane(cam.ray((0.0, 0.0))) == pytest.approx((0.5, 1.0))


def test_perspective_offset_ray_moves_right_and_up():
    cam = PerspectiveCamera(position=(0.0, 0.0, 5.0), target=(0.0, 0.0, 0.0))
    x, y = intersect_z_plane(cam.ray((0.5, 0.5)))
    assert x > 0.0 and y > 0.0


def test_parallel_ray_has_no_intersection():
    assert intersect_z_plane(ParallelCamera().ray((0.0, 0.0))) is None


def test_ray_pointing_away_has_no_intersection():
    cam = PerspectiveCamera(position=(0.0, 0.0, 5.0), target=(0.0, 0.0, 10.0))
    assert intersect_z_plane(cam.ray((0.0, 0.0))) is None


def test_ray_segment_distance():
    ray = Ray(np.array([0.5, 0.2, 3.0]), np.array([0.0, 0.0, -1.0]))
    assert ray_segment_distance(ray, (0.0, 0.0, 0.0), (1.0, 0.0, 0.0)) == pytest.approx(0.2)
    # beyond the end of the segment
    ray = Ray(np.array([2.0, 0.0, 3.0]), np.array([0.0, 0.0, -1.0]))
    assert ray_segment_distance(ray, (0.0, 0.0, 0.0), (1.0, 0.0, 0.0)) == pytest.approx(1.0)


# --- Hit testing ---


def test_hit_tester_finds_each_rod(params, camera, state):
    tester = RodHitTester(compute_pose(state, params), params)
    pose = compute_pose(state, params)
    assert tester(camera.ray(ndc(camera, *pose.rod1_center))) == 1
    # a point on rod 2 well clear of rod 1
    assert tester(camera.ray(ndc(camera, 0.7, pose.rod2_center[1]))) == 2
    assert tester(camera.ray(ndc(camera, 2.0, -1.5))) is None


# --- Drag angles ---


def test_link1_angle_from_base_pivot(params, state):
    bx, by = params.base_pivot
    assert drag_angle(1, (bx + 1.0, by), state, params) == pytest.approx(math.pi / 2)
    assert drag_angle(1, (bx, by - 1.0), state, params) == pytest.approx(0.0)


def test_link2_angle_is_relative_to_link1(params):
    state = SimulationState(0.3, 0.0, 0.0, 0.0)
    ax, ay = attachment_point(state.theta1, params)
    # straight down from the attachment is absolute 0
    assert drag_angle(2, (ax, ay - 1.0), state, params) == pytest.approx(-0.3)


# --- State machine ---


def test_free_mode_is_inert(params, camera, state):
    c = InteractionController(InteractionMode.FREE)
    pose = compute_pose(state, params)
    with c.session():
        assert not c.pointer_down(ndc(camera, *pose.rod1_center), camera, state, params)
        assert c.pin() is None


def test_events_outside_session_are_ignored(params, camera, state):
    c = InteractionController(InteractionMode.POSITION_FIX)
    pose = compute_pose(state, params)
    assert not c.pointer_down(ndc(camera, *pose.rod1_center), camera, state, params)
    assert c.pinned_link is None


def test_pointer_down_holds_rod_at_current_angle(controller, params, camera):
    state = SimulationState(0.25, 0.0, 1.0, 0.0)
    pose = compute_pose(state, params)
    assert controller.pointer_down(ndc(camera, *pose.rod1_center), camera, state, params)
    pin = controller.pin()
    assert (pin.link, pin.angle) == (1, 0.25)


def test_pointer_down_on_empty_space_does_nothing(controller, params, camera, state):
    assert not controller.pointer_down(ndc(camera, 2.0, -1.5), camera, state, params)
    assert controller.pin() is None
    assert not controller.pointer_move(ndc(camera, 1.0, 1.0), camera, state, params)


def test_pointer_move_reaims_pinned_rod(controller, params, camera, state):
    pose = compute_pose(state, params)
    controller.pointer_down(ndc(camera, *pose.rod1_center), camera, state, params)
    bx, by = params.base_pivot
    target = (bx + math.sin(math.pi / 4), by - math.cos(math.pi / 4))
    assert controller.pointer_move(ndc(camera, *target), camera, state, params)
    assert controller.pin().angle == pytest.approx(math.pi / 4)
    assert controller.pointer == pytest.approx(target)


def test_dragging_rod2(controller, params, camera, state):
    pose = compute_pose(state, params)
    assert controller.pointer_down(ndc(camera, 0.7, pose.rod2_center[1]), camera, state, params)
    assert controller.pinned_link == 2
    ax, ay = pose.rod2_attachment
    controller.pointer_move(ndc(camera, ax - 1.0, ay), camera, state, params)
    assert controller.pin().angle == pytest.approx(-math.pi / 2)


def test_first_pin_wins(controller, params, camera, state):
    pose = compute_pose(state, params)
    controller.pointer_down(ndc(camera, *pose.rod1_center), camera, state, params)
    assert not controller.pointer_down(ndc(camera, 0.7, pose.rod2_center[1]),
                                       camera, state, params)
    assert controller.pinned_link == 1


def test_degenerate_move_is_ignored(controller, params, camera, state):
    pose = compute_pose(state, params)
    controller.pointer_down(ndc(camera, *pose.rod1_center), camera, state, params)
    before = controller.pin()
    assert not controller.pointer_move((0.0, 0.0), ParallelCamera(), state, params)
    assert controller.pin() == before


def test_camera_looking_along_up_has_no_ray():
    cam = PerspectiveCamera(position=(0.0, 5.0, 0.0), target=(0.0, 0.0, 0.0))
    assert cam.ray((0.0, 0.0)) is None
    assert PerspectiveCamera(position=(0.0, 0.0, 0.0), target=(0.0, 0.0, 0.0)).ray((0.0, 0.0)) is None


def test_pointer_down_with_degenerate_camera_is_ignored(controller, params, state):
    cam = PerspectiveCamera(position=(0.0, 5.0, 0.0), target=(0.0, 0.0, 0.0))
    assert not controller.pointer_down((0.0, 0.0), cam, state, params)
    assert controller.pin() is None
    assert controller.pointer is None


def test_pointer_move_with_degenerate_camera_is_ignored(controller, params, camera, state):
    pose = compute_pose(state, params)
    controller.pointer_down(ndc(camera, *pose.rod1_center), camera, state, params)
    before = controller.pin()
    cam = PerspectiveCamera(position=(0.0, 5.0, 0.0), target=(0.0, 0.0, 0.0))
    assert not controller.pointer_move((0.3, -0.2), cam, state, params)
    assert controller.pin() == before


@pytest.mark.parametrize("release", ["pointer_up", "pointer_leave"])
def test_release_frees_the_rod(controller, params, camera, state, release):
    pose = compute_pose(state, params)
    controller.pointer_down(ndc(camera, *pose.rod1_center), camera, state, params)
    getattr(controller, release)()
    assert controller.pin() is None
    assert controller.pointer is None


def test_switching_to_free_mode_drops_pin(controller, params, camera, state):
    pose = compute_pose(state, params)
    controller.pointer_down(ndc(camera, *pose.rod1_center), camera, state, params)
    controller.mode = InteractionMode.FREE
    assert controller.pinned_link is None


def test_session_end_drops_pin(params, camera, state):
    c = InteractionController(InteractionMode.POSITION_FIX)
    pose = compute_pose(state, params)
    with c.session():
        c.pointer_down(ndc(camera, *pose.rod1_center), camera, state, params)
        assert c.pinned_link == 1
    assert not c.active
    assert c.pinned_link is None


def test_custom_hit_tester(controller, params, camera, state):
    assert controller.pointer_down((0.0, 0.0), camera, state, params,
                                   hit_tester=lambda ray: 2)
    assert controller.pin().angle == state.theta2
