#!/usr/bin/env python
import sys
import logging
import argparse

import pygame
import pygame.gfxdraw

from session import GameSession, BUBBLE_RADIUS


GAME_W, GAME_H = 480, 800
FPS = 60

GUN_SIZE = 60
GUN_TOUCH = 80
LASER_W = 4
BUBBLE_GLYPH = "\U0001F354"
EMOJI_FONTS = "segoeuiemoji,applecoloremoji,notocoloremoji,notoemoji,twemoji"

WHITE = (245, 245, 245)
RED = (255, 0, 0)
GREEN = (76, 175, 80)
GUN_GREY = (85, 85, 85)
BG_COLOR = (18, 22, 36)
BUBBLE_FILL = (120, 220, 140)
BUBBLE_EDGE = (60, 150, 90)


def rounded_rect(surface, rect, color, radius=12, width=0):
    pygame.draw.rect(surface, color, rect, width, border_radius=radius)


def _lerp(a, b, t): return a + (b - a) * max(0.0, min(1.0, t))

def _lerp_color(c1, c2, t):
    return (int(_lerp(c1[0], c2[0], t)), int(_lerp(c1[1], c2[1], t)), int(_lerp(c1[2], c2[2], t)))


def draw_progress_bar(surface, rect, frac):
    rounded_rect(surface, rect, (30, 34, 48), radius=6)
    fill_w = int(rect.w * max(0.0, min(1.0, frac)))
    if fill_w > 0:
        col = _lerp_color((60, 200, 120), (220, 70, 60), 1 - frac)
        rounded_rect(surface, pygame.Rect(rect.x, rect.y, fill_w, rect.h), col, radius=6)


def draw_button(surface, rect, text, font, hover=False):
    color = (102, 187, 106) if hover else GREEN
    rounded_rect(surface, rect, color, radius=rect.h // 2)
    label = font.render(text, True, WHITE)
    surface.blit(label, (rect.centerx - label.get_width()//2, rect.centery - label.get_height()//2))


def _fmt_time_left(sec):
    return f"{max(0, int(sec))}s"


def load_image(path, size):
    try:
        img = pygame.image.load(path).convert_alpha()
    except (pygame.error, FileNotFoundError) as e:
        print(f"Warning: {path} not found. Using placeholder.", e)
        return None
    return pygame.transform.smoothscale(img, size)


def make_bubble_sprite(glyph, radius):
    """Render the bubble glyph once; a plain circle if no emoji font is installed."""
    size = radius * 2
    sprite = pygame.Surface((size, size), pygame.SRCALPHA)
    path = pygame.font.match_font(EMOJI_FONTS)
    if path and glyph:
        try:
            text = pygame.font.Font(path, int(size * 0.8)).render(glyph, True, WHITE)
        except pygame.error as e:
            print("Warning: could not render bubble glyph, drawing circles instead.", e)
        else:
            text = pygame.transform.smoothscale(text, (size, size))
            sprite.blit(text, (0, 0))
            return sprite
    pygame.gfxdraw.filled_circle(sprite, radius, radius, radius - 2, BUBBLE_FILL)
    pygame.gfxdraw.aacircle(sprite, radius, radius, radius - 2, BUBBLE_EDGE)
    return sprite


class Renderer:
    """Draws a session snapshot. Holds fonts and sprites, never game state."""

    def __init__(self, screen, glyph=BUBBLE_GLYPH, round_seconds=120):
        self.screen = screen
        self.w, self.h = screen.get_size()
        self.round_seconds = round_seconds
        self.font = pygame.font.SysFont("Arial", 32, bold=True)
        self.small = pygame.font.SysFont("Arial", 18, bold=True)
        self.bubble = make_bubble_sprite(glyph, BUBBLE_RADIUS)
        self.background = load_image("assets/background.png", (self.w, self.h))
        self.bottle = load_image("assets/bottle.png", (50, 50))
        self.button_rect = pygame.Rect(0, 0, 200, 52)
        self.button_rect.center = (self.w // 2, self.h // 2 + 40)

    def gun_rect(self, snap):
        rect = pygame.Rect(0, 0, GUN_SIZE, GUN_SIZE)
        rect.midbottom = (int(snap.gun_center_x), self.h - (GUN_TOUCH - GUN_SIZE) // 2)
        return rect

    def draw(self, snap, mouse_pos=(0, 0)):
        if self.background is not None:
            self.screen.blit(self.background, (0, 0))
        else:
            self.screen.fill(BG_COLOR)

        for b in snap.bubbles:
            self.screen.blit(self.bubble, (int(b.x), int(b.y)))

        if snap.laser_visible:
            x = int(snap.gun_center_x) - LASER_W // 2
            glow = pygame.Surface((LASER_W * 5, self.h), pygame.SRCALPHA)
            glow.fill((255, 0, 0, 60))
            self.screen.blit(glow, (x - LASER_W * 2, 0))
            pygame.draw.rect(self.screen, RED, (x, 0, LASER_W, self.h))

        gun = self.gun_rect(snap)
        rounded_rect(self.screen, gun, GUN_GREY, radius=5)
        if self.bottle is not None:
            self.screen.blit(self.bottle, self.bottle.get_rect(center=gun.center))

        self.draw_hud(snap)

        if not snap.started:
            self.draw_overlay("Bubble Popper", [], "Start Game", mouse_pos)
        elif snap.over:
            self.draw_overlay("Game Over", [f"Final Score: {snap.score}"], "Play Again", mouse_pos)

    def draw_hud(self, snap):
        score = self.small.render(f"Score: {snap.score}", True, WHITE)
        timer = self.small.render(f"Time: {_fmt_time_left(snap.time_remaining)}", True, WHITE)
        self.screen.blit(score, (20, 30))
        self.screen.blit(timer, (self.w - 20 - timer.get_width(), 30))
        bar = pygame.Rect(20, 58, self.w - 40, 6)
        draw_progress_bar(self.screen, bar, snap.time_remaining / self.round_seconds)

    def draw_overlay(self, title, lines, button, mouse_pos):
        veil = pygame.Surface((self.w, self.h), pygame.SRCALPHA)
        veil.fill((0, 0, 0, 204))
        self.screen.blit(veil, (0, 0))
        t = self.font.render(title, True, WHITE)
        self.screen.blit(t, (self.w//2 - t.get_width()//2, self.h//2 - 100))
        y = self.h//2 - 50
        for line in lines:
            s = self.small.render(line, True, WHITE)
            self.screen.blit(s, (self.w//2 - s.get_width()//2, y))
            y += s.get_height() + 6
        draw_button(self.screen, self.button_rect, button, self.small,
                    self.button_rect.collidepoint(mouse_pos))


def handle_event(e, session, renderer):
    """Map one pygame event onto the session. Returns False to quit."""
    now = pygame.time.get_ticks()
    if e.type == pygame.QUIT:
        return False
    if e.type == pygame.KEYDOWN:
        if e.key in (pygame.K_ESCAPE, pygame.K_q):
            return False
        if e.key in (pygame.K_RETURN, pygame.K_SPACE):
            session.start()
        elif e.key == pygame.K_r:
            session.reset()
        return True

    # SDL delivers touches as mouse events too, so mouse handling covers both
    if session.running:
        if e.type == pygame.MOUSEBUTTONDOWN and e.button == 1:
            session.press(e.pos[0], now)
        elif e.type == pygame.MOUSEMOTION and e.buttons[0]:
            session.drag(e.pos[0])
        elif e.type == pygame.MOUSEBUTTONUP and e.button == 1:
            session.release(e.pos[0], now)
    elif e.type == pygame.MOUSEBUTTONDOWN and e.button == 1:
        if renderer.button_rect.collidepoint(e.pos):
            if session.over:
                session.reset()
            else:
                session.start()
    return True


def run(session, glyph=BUBBLE_GLYPH, camera=False):
    width, height = session.screen_width, session.screen_height

    pygame.init()
    pygame.display.set_caption("Bubble Popper")
    screen = pygame.display.set_mode((width, height))
    clock = pygame.time.Clock()
    renderer = Renderer(screen, glyph, session.round_seconds)

    hands = None
    if camera:
        from hand_input import HandInput
        hands = HandInput()
        hands.start()

    running = True
    while running:
        clock.tick(FPS)
        session.advance(pygame.time.get_ticks())

        for e in pygame.event.get():
            if not handle_event(e, session, renderer):
                running = False
                break

        if hands is not None:
            pointer_x, shots = hands.poll(width)
            if session.running and pointer_x is not None:
                session.aim(pointer_x)
                now = pygame.time.get_ticks()
                for _ in range(shots):
                    session.press(pointer_x, now)
                    session.release(pointer_x, now)

        renderer.draw(session.snapshot(), pygame.mouse.get_pos())
        pygame.display.flip()

    if hands is not None:
        hands.stop()
    session.reset()
    pygame.quit()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Bubble Popper: drag the gun, tap to fire.")
    parser.add_argument("--width", type=int, default=GAME_W, help="window width in pixels")
    parser.add_argument("--height", type=int, default=GAME_H, help="window height in pixels")
    parser.add_argument("--glyph", default=BUBBLE_GLYPH, help="emoji drawn for each bubble")
    parser.add_argument("--camera", action="store_true",
                        help="aim with your hand through the webcam; close the hand to fire")
    parser.add_argument("--seed", type=int, default=None, help="seed for bubble placement")
    parser.add_argument("--max-bubbles", type=int, default=None,
                        help="cap on bubbles alive at once (default: unlimited)")
    parser.add_argument("--debug", action="store_true", help="log round lifecycle to stderr")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    if args.debug:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s %(message)s")
    try:
        session = GameSession(args.width, args.height, seed=args.seed, max_bubbles=args.max_bubbles)
    except ValueError as e:
        print(f"ERROR: {e}")
        sys.exit(2)
    run(session, args.glyph, args.camera)
    sys.exit(0)


if __name__ == "__main__":
    main()
